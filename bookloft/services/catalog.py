# bookloft/services/catalog.py

import logging
from typing import Any, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from bookloft.errors import ConflictError, InvalidArgumentError, NotFoundError
from bookloft.sa.database import Database
from bookloft.sa.models import Book, METADATA_FIELDS, TransactionType, generate_id, utcnow
from bookloft.sa.repositories import BookRepository, TransactionRepository
from bookloft.services.ledger import validate_quantity
from bookloft.utils.locks import BookLocks

logger = logging.getLogger(__name__)

ISBN_LENGTH = 13

class Catalog:
    """Adding, editing and looking up books. Stock moves through the Ledger."""

    def __init__(self, database: Database, locks: Optional[BookLocks] = None):
        self.database = database
        self.locks = locks if locks is not None else BookLocks()

    def add_book(
        self,
        isbn: str,
        title: str,
        author: str = '',
        quantity: int = 0,
        volunteer_name: Optional[str] = None,
        **metadata: Any
    ) -> Book:
        """Create a book.

        Opening stock is recorded as an "Initial stock" donation in the same
        database transaction, so the book's history accounts for it.

        Raises:
            InvalidArgumentError: Bad ISBN, title, quantity or unknown metadata field
            ConflictError: The ISBN is already in the catalog
        """
        if not isinstance(isbn, str) or len(isbn) != ISBN_LENGTH:
            raise InvalidArgumentError(f"isbn must be exactly {ISBN_LENGTH} characters", target="isbn")
        if not title:
            raise InvalidArgumentError("title is required", target="title")
        quantity = validate_quantity(quantity, minimum=0)
        unknown = set(metadata) - set(METADATA_FIELDS)
        if unknown:
            raise InvalidArgumentError(f"Unknown book fields: {', '.join(sorted(unknown))}")

        now = utcnow()
        try:
            with self.database.get_db() as session:
                books = BookRepository(session)
                if books.get_by_isbn(isbn) is not None:
                    raise ConflictError(f"A book with ISBN {isbn} already exists", target=isbn)
                book = books.create(
                    id=generate_id(),
                    isbn=isbn,
                    title=title,
                    author=author or '',
                    quantity=quantity,
                    created_at=now,
                    updated_at=now,
                    **metadata
                )
                if quantity > 0:
                    TransactionRepository(session).add(
                        id=generate_id(),
                        book_id=book.id,
                        type=TransactionType.DONATION.value,
                        quantity=quantity,
                        date=now,
                        volunteer_name=volunteer_name,
                        notes="Initial stock",
                        created_at=now
                    )
        except IntegrityError as e:
            # Lost a race with another insert of the same ISBN
            raise ConflictError(f"A book with ISBN {isbn} already exists", target=isbn) from e

        logger.info(f"Added book {book.id} ({isbn}) with {quantity} copies")
        return book

    def get_book(self, book_id: str) -> Book:
        with self.database.get_db() as session:
            book = BookRepository(session).get_by_id(book_id)
            if book is None:
                raise NotFoundError("Book not found", target=book_id)
            return book

    def get_by_isbn(self, isbn: str) -> Book:
        with self.database.get_db() as session:
            book = BookRepository(session).get_by_isbn(isbn)
            if book is None:
                raise NotFoundError("Book not found", target=isbn)
            return book

    def search(
        self,
        search: Optional[str] = None,
        available_only: bool = False,
        page: int = 1,
        limit: int = 50
    ) -> Tuple[List[Book], int]:
        """Search by title, author or ISBN; returns (books on this page, total)"""
        page = validate_quantity(page, field="page")
        limit = validate_quantity(limit, field="limit")
        with self.database.get_db() as session:
            repo = BookRepository(session)
            books = repo.search(search, available_only, limit=limit, offset=(page - 1) * limit)
            return books, repo.count(search, available_only)

    def update_book(self, book_id: str, **fields: Any) -> Book:
        """Edit descriptive fields. Quantity is not editable here.

        Raises:
            InvalidArgumentError: A field outside the book's metadata, or a bad ISBN
            NotFoundError: The book does not exist
            ConflictError: The new ISBN belongs to another book
        """
        unknown = set(fields) - set(METADATA_FIELDS)
        if unknown:
            raise InvalidArgumentError(f"Fields not editable: {', '.join(sorted(unknown))}")
        for required in ('isbn', 'title'):
            if required in fields and not fields[required]:
                raise InvalidArgumentError(f"{required} cannot be empty", target=required)
        if 'author' in fields and fields['author'] is None:
            fields['author'] = ''
        isbn = fields.get('isbn')
        if isbn is not None and len(isbn) != ISBN_LENGTH:
            raise InvalidArgumentError(f"isbn must be exactly {ISBN_LENGTH} characters", target="isbn")

        with self.locks.hold(book_id):
            with self.database.get_db() as session:
                repo = BookRepository(session)
                book = repo.get_for_update(book_id)
                if book is None:
                    raise NotFoundError("Book not found", target=book_id)
                if isbn is not None and isbn != book.isbn:
                    owner = repo.get_by_isbn(isbn)
                    if owner is not None:
                        raise ConflictError(f"ISBN {isbn} already belongs to book {owner.id}", target=book_id)
                repo.update_metadata(book, fields)

        logger.info(f"Updated book {book_id}: {', '.join(sorted(fields)) or 'no fields'}")
        return book

    def delete_book(self, book_id: str) -> None:
        """Remove a book and, with it, its transactions"""
        with self.locks.hold(book_id):
            with self.database.get_db() as session:
                repo = BookRepository(session)
                book = repo.get_by_id(book_id)
                if book is None:
                    raise NotFoundError("Book not found", target=book_id)
                repo.delete(book)
        logger.warning(f"Deleted book {book_id} and its transactions")
