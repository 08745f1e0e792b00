from .base import Base, TimestampMixin, generate_id, utcnow, touched_after
from .book import Book, METADATA_FIELDS
from .transaction import Transaction, TransactionType

__all__ = [
    'Base',
    'TimestampMixin',
    'generate_id',
    'utcnow',
    'touched_after',
    'Book',
    'METADATA_FIELDS',
    'Transaction',
    'TransactionType'
]
