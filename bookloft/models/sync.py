# bookloft/models/sync.py

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, List

from bookloft.sa.models import TransactionType
from .book import Book, BookMetadata, Transaction

class SyncBook(BookMetadata):
    """A book as recorded by an offline client"""
    id: str = Field(min_length=1)
    isbn: str = Field(min_length=1, max_length=13)
    title: str = Field(min_length=1, max_length=255)
    author: str = Field(default="", max_length=255)
    quantity: int = Field(ge=0)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(extra='ignore')

class SyncTransaction(BaseModel):
    """A transaction as recorded by an offline client"""
    id: str = Field(min_length=1)
    book_id: str = Field(min_length=1)
    type: TransactionType
    quantity: int = Field(ge=1)
    date: datetime
    volunteer_name: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(extra='ignore')

class SyncError(BaseModel):
    kind: str               # "book" or "transaction"
    id: Optional[str] = None
    code: str
    message: str

class SyncResult(BaseModel):
    books_processed: int = 0
    transactions_processed: int = 0
    transactions_duplicate: int = 0
    errors: List[SyncError] = []

class SyncDelta(BaseModel):
    books: List[Book]
    transactions: List[Transaction]
    sync_timestamp: datetime

class SyncStatus(BaseModel):
    total_books: int
    total_transactions: int
    last_book_update: Optional[datetime] = None
    last_transaction: Optional[datetime] = None
    server_time: datetime
