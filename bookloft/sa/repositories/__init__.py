from .book import BookRepository
from .transaction import TransactionRepository

__all__ = ['BookRepository', 'TransactionRepository']
