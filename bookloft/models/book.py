# bookloft/models/book.py

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, List

from bookloft.sa.models import TransactionType

class BookMetadata(BaseModel):
    publisher: Optional[str] = Field(default=None, max_length=255)
    published_date: Optional[str] = None
    description: Optional[str] = None
    thumbnail_url: Optional[str] = Field(default=None, max_length=500)
    binding: Optional[str] = Field(default=None, max_length=50)
    isbn_10: Optional[str] = Field(default=None, max_length=10)
    language: Optional[str] = Field(default=None, max_length=10)
    page_count: Optional[str] = Field(default=None, max_length=10)
    dimensions: Optional[str] = Field(default=None, max_length=50)
    weight: Optional[str] = Field(default=None, max_length=20)
    edition: Optional[str] = Field(default=None, max_length=50)
    series: Optional[str] = Field(default=None, max_length=255)
    subtitle: Optional[str] = Field(default=None, max_length=500)
    categories: Optional[str] = None      # JSON string
    tags: Optional[str] = None            # JSON string
    maturity_rating: Optional[str] = Field(default=None, max_length=20)
    format: Optional[str] = Field(default=None, max_length=50)

class BookCreate(BookMetadata):
    isbn: str = Field(min_length=13, max_length=13)
    title: str = Field(min_length=1, max_length=255)
    author: str = Field(default='', max_length=255)
    quantity: int = Field(default=0, ge=0)

class BookUpdate(BookMetadata):
    """Metadata edit; quantity is not editable here"""
    isbn: Optional[str] = Field(default=None, min_length=13, max_length=13)
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    author: Optional[str] = Field(default=None, max_length=255)

class Book(BookMetadata):
    id: str
    isbn: str
    title: str
    author: str
    quantity: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class TransactionCreate(BaseModel):
    book_id: str = Field(min_length=1)
    type: TransactionType
    quantity: int = Field(ge=1)
    date: Optional[datetime] = None
    notes: Optional[str] = None

class Transaction(BaseModel):
    id: str
    book_id: str
    type: TransactionType
    quantity: int
    date: datetime
    volunteer_name: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class BookTransactionAnalytics(BaseModel):
    total_transactions: int
    times_donated: int
    times_sold: int
    donation_count: int
    sale_count: int

class BookHistory(BaseModel):
    transactions: List[Transaction]
    analytics: BookTransactionAnalytics
