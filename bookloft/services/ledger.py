# bookloft/services/ledger.py
"""Append-only transaction ledger.

Every donation or sale is inserted together with the matching change to the
book's quantity in one database transaction, while holding the book's lock.
The stored quantity therefore always equals donations minus sales for that
book, and never goes below zero.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple, Union

from sqlalchemy.exc import SQLAlchemyError

from bookloft.errors import (
    BookloftError, InsufficientStockError, InternalError,
    InvalidArgumentError, NotFoundError
)
from bookloft.sa.database import Database
from bookloft.sa.models import Transaction, TransactionType, generate_id, utcnow
from bookloft.sa.repositories import BookRepository, TransactionRepository
from bookloft.utils.locks import BookLocks
from bookloft.utils.timeutil import Timestamp, parse_timestamp

logger = logging.getLogger(__name__)

def validate_type(value: Union[str, TransactionType]) -> TransactionType:
    try:
        return TransactionType(value)
    except ValueError:
        raise InvalidArgumentError(
            f"type must be one of: {', '.join(t.value for t in TransactionType)}",
            target="type"
        ) from None

def validate_quantity(value: int, minimum: int = 1, field: str = "quantity") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{field} must be an integer", target=field)
    if value < minimum:
        raise InvalidArgumentError(f"{field} must be at least {minimum}", target=field)
    return value

class Ledger:
    def __init__(self, database: Database, locks: Optional[BookLocks] = None):
        self.database = database
        self.locks = locks if locks is not None else BookLocks()

    def append(
        self,
        type: Union[str, TransactionType],
        book_id: str,
        quantity: int,
        date: Optional[Timestamp] = None,
        volunteer_name: Optional[str] = None,
        notes: Optional[str] = None
    ) -> Transaction:
        """Record a donation or sale and adjust the book's stock.

        Args:
            type: 'donation' or 'sale'
            book_id: Identifier of an existing book
            quantity: Number of copies, at least 1
            date: Business date of the movement; defaults to now
            volunteer_name: Who recorded it
            notes: Free text

        Returns:
            The committed Transaction with its identifier and created_at

        Raises:
            InvalidArgumentError: Bad type, quantity or date
            NotFoundError: The book does not exist
            InsufficientStockError: A sale larger than the current stock
            InternalError: The store failed; nothing was written
        """
        transaction_type = validate_type(type)
        quantity = validate_quantity(quantity)
        effective_date = utcnow() if date is None else parse_timestamp(date, "date")
        if not book_id:
            raise InvalidArgumentError("book_id is required", target="book_id")

        delta = transaction_type.sign * quantity
        with self.locks.hold(book_id):
            try:
                with self.database.get_db() as session:
                    books = BookRepository(session)
                    transactions = TransactionRepository(session)

                    book = books.get_for_update(book_id)
                    if book is None:
                        raise NotFoundError("Book not found", target=book_id)
                    if book.quantity + delta < 0:
                        raise InsufficientStockError(book_id, quantity, book.quantity)

                    transaction = transactions.add(
                        id=generate_id(),
                        book_id=book_id,
                        type=transaction_type.value,
                        quantity=quantity,
                        date=effective_date,
                        volunteer_name=volunteer_name,
                        notes=notes,
                        created_at=utcnow()
                    )
                    if not books.increment_quantity(book_id, delta):
                        # Another process moved the stock between our read and the guarded update
                        current = books.get_for_update(book_id)
                        raise InsufficientStockError(book_id, quantity, current.quantity if current else 0)
            except InsufficientStockError as e:
                logger.warning(f"Rejected sale of {quantity} for book {book_id}: only {e.available} in stock")
                raise
            except BookloftError:
                raise
            except SQLAlchemyError as e:
                logger.exception(f"Store failure appending {transaction_type.value} for book {book_id}")
                raise InternalError("Failed to record transaction", target=book_id) from e

        logger.info(
            f"Recorded {transaction_type.value} {transaction.id} of {quantity} for book {book_id}"
        )
        return transaction

    def donate(self, book_id: str, quantity: int, **kwargs) -> Transaction:
        return self.append(TransactionType.DONATION, book_id, quantity, **kwargs)

    def sell(self, book_id: str, quantity: int, **kwargs) -> Transaction:
        return self.append(TransactionType.SALE, book_id, quantity, **kwargs)

    def quantity_for(self, book_id: str) -> int:
        """Committed stock for a book, read fresh from the store"""
        try:
            with self.database.get_db() as session:
                book = BookRepository(session).get_by_id(book_id)
                if book is None:
                    raise NotFoundError("Book not found", target=book_id)
                return book.quantity
        except SQLAlchemyError as e:
            raise InternalError("Failed to read quantity", target=book_id) from e

    def get(self, transaction_id: str) -> Transaction:
        with self.database.get_db() as session:
            transaction = TransactionRepository(session).get_by_id(transaction_id)
            if transaction is None:
                raise NotFoundError("Transaction not found", target=transaction_id)
            return transaction

    def list_transactions(
        self,
        book_id: Optional[str] = None,
        type: Optional[str] = None,
        volunteer_name: Optional[str] = None,
        date_from: Optional[Timestamp] = None,
        date_to: Optional[Timestamp] = None,
        page: int = 1,
        limit: int = 50
    ) -> Tuple[List[Transaction], int]:
        """Page through the ledger, newest business date first.

        Returns:
            Tuple of (transactions on this page, total matching count)
        """
        if type is not None:
            type = validate_type(type).value
        page = validate_quantity(page, field="page")
        limit = validate_quantity(limit, field="limit")
        lower: Optional[datetime] = parse_timestamp(date_from, "date_from") if date_from else None
        upper: Optional[datetime] = parse_timestamp(date_to, "date_to") if date_to else None

        with self.database.get_db() as session:
            return TransactionRepository(session).filter(
                book_id=book_id,
                type=type,
                volunteer_name=volunteer_name,
                date_from=lower,
                date_to=upper,
                limit=limit,
                offset=(page - 1) * limit
            )
