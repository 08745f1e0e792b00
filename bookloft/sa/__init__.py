from .database import Database
from .models import Base, Book, Transaction, TransactionType

__all__ = [
    'Database',
    'Base',
    'Book',
    'Transaction',
    'TransactionType'
]
