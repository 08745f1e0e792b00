# bookloft/sa/repositories/book.py
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import func, or_, update
from sqlalchemy.orm import Session
from ..models import Book, METADATA_FIELDS, touched_after

class BookRepository:
    """Book Store queries bound to one session.

    Methods only flush; committing or rolling back belongs to the caller's scope.
    """

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, book_id: str) -> Optional[Book]:
        """Get a book by its identifier"""
        return self.session.get(Book, book_id)

    def get_by_isbn(self, isbn: str) -> Optional[Book]:
        """Get a book by its 13-character ISBN"""
        return self.session.query(Book).filter(Book.isbn == isbn).first()

    def get_for_update(self, book_id: str) -> Optional[Book]:
        """Get a book and take its row lock for the rest of the transaction.

        Back-ends without row locks (SQLite) render this as a plain SELECT.
        """
        return (
            self.session.query(Book)
            .filter(Book.id == book_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def _search_query(self, search: Optional[str] = None, available_only: bool = False):
        query = self.session.query(Book)
        if search and search.strip():
            like = f"%{search.strip()}%"
            query = query.filter(or_(
                Book.title.ilike(like),
                Book.author.ilike(like),
                Book.isbn.ilike(like)
            ))
        if available_only:
            query = query.filter(Book.quantity > 0)
        return query

    def search(
        self,
        search: Optional[str] = None,
        available_only: bool = False,
        limit: int = 50,
        offset: int = 0
    ) -> List[Book]:
        """Search books by title, author or ISBN.

        Args:
            search: Substring to match against title, author and ISBN
            available_only: Only include books with quantity > 0
            limit: Maximum number of results to return
            offset: Number of records to skip

        Returns:
            List of Book objects ordered by title
        """
        return (
            self._search_query(search, available_only)
            .order_by(Book.title.asc(), Book.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count(self, search: Optional[str] = None, available_only: bool = False) -> int:
        """Count books matching the search criteria"""
        return self._search_query(search, available_only).count()

    def create(self, **fields: Any) -> Book:
        """Insert a new book; the identifier and timestamps default when absent"""
        book = Book(**fields)
        self.session.add(book)
        self.session.flush()
        return book

    def update_metadata(self, book: Book, fields: Dict[str, Any]) -> Book:
        """Overwrite descriptive fields and bump updated_at.

        Keys outside METADATA_FIELDS are ignored; quantity only moves through the ledger or sync.
        """
        for name, value in fields.items():
            if name in METADATA_FIELDS:
                setattr(book, name, value)
        book.updated_at = touched_after(book.updated_at)
        self.session.flush()
        return book

    def increment_quantity(self, book_id: str, delta: int) -> bool:
        """Atomically add delta to the book's quantity and touch updated_at.

        updated_at moves forward even past a client-supplied value ahead of the server clock.

        The guard in the WHERE clause keeps the quantity non-negative even if a
        concurrent writer got there first.

        Returns:
            True if the row was updated, False if the book is missing or the
            result would have been negative
        """
        previous = self.session.query(Book.updated_at).filter(Book.id == book_id).scalar()
        result = self.session.execute(
            update(Book.__table__)
            .where(Book.__table__.c.id == book_id)
            .where(Book.__table__.c.quantity + delta >= 0)
            .values(
                quantity=Book.__table__.c.quantity + delta,
                updated_at=touched_after(previous)
            )
        )
        return result.rowcount == 1

    def upsert(self, book_id: str, fields: Dict[str, Any]) -> Tuple[Book, bool]:
        """Insert the book, or overwrite every given column of the existing row.

        Returns:
            Tuple of (book, created)
        """
        book = self.get_by_id(book_id)
        if book is None:
            return self.create(id=book_id, **fields), True

        for name, value in fields.items():
            setattr(book, name, value)
        self.session.flush()
        return book, False

    def delete(self, book: Book) -> None:
        """Delete a book; its transactions go with it"""
        self.session.delete(book)
        self.session.flush()

    def updated_since(self, since: datetime) -> List[Book]:
        """Books changed after the watermark, oldest change first"""
        return (
            self.session.query(Book)
            .filter(Book.updated_at > since)
            .order_by(Book.updated_at.asc(), Book.id.asc())
            .all()
        )

    def count_all(self) -> int:
        return self.session.query(func.count(Book.id)).scalar() or 0

    def total_quantity(self) -> int:
        return self.session.query(func.coalesce(func.sum(Book.quantity), 0)).scalar() or 0

    def count_with_quantity_above(self, threshold: int) -> int:
        """Count books holding more than `threshold` copies"""
        return (
            self.session.query(func.count(Book.id))
            .filter(Book.quantity > threshold)
            .scalar() or 0
        )

    def last_update(self) -> Optional[datetime]:
        return self.session.query(func.max(Book.updated_at)).scalar()

    def with_multiple_copies(self) -> List[Book]:
        """Books with more than one copy, most copies first"""
        return (
            self.session.query(Book)
            .filter(Book.quantity > 1)
            .order_by(Book.quantity.desc(), Book.title.asc())
            .all()
        )

    def out_of_stock(self) -> List[Book]:
        return (
            self.session.query(Book)
            .filter(Book.quantity == 0)
            .order_by(Book.title.asc())
            .all()
        )

    def all_quantities(self) -> Dict[str, int]:
        """Map of book id to stored quantity"""
        return dict(self.session.query(Book.id, Book.quantity).all())
