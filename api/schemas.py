# api/schemas.py

from typing import Any, Dict, List, Optional, TypeVar, Generic
from pydantic import BaseModel
from datetime import datetime

from bookloft.models.book import Book, Transaction

T = TypeVar('T')

class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: T

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=(total + limit - 1) // limit)

class BookPage(BaseModel):
    books: List[Book]
    pagination: Pagination

class TransactionPage(BaseModel):
    transactions: List[Transaction]
    pagination: Pagination

class SyncUpload(BaseModel):
    # Validated item by item in the reconciler
    books: List[Dict[str, Any]] = []
    transactions: List[Dict[str, Any]] = []
    last_sync: datetime

class Message(BaseModel):
    message: str
