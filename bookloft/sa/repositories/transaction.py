# bookloft/sa/repositories/transaction.py
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import case, func, insert
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session
from ..models import Book, Transaction, TransactionType

# Dialects with a native INSERT ... ON CONFLICT DO NOTHING
_CONFLICT_INSERTS = {
    'sqlite': sqlite_insert,
    'postgresql': postgresql_insert,
}

_DONATION = TransactionType.DONATION.value
_SALE = TransactionType.SALE.value

def _sum_of(type_: str):
    return func.coalesce(func.sum(case((Transaction.type == type_, Transaction.quantity), else_=0)), 0)

def _count_of(type_: str):
    return func.coalesce(func.sum(case((Transaction.type == type_, 1), else_=0)), 0)

class TransactionRepository:
    """Append-only Transaction Store bound to one session.

    No update or delete. Methods only flush.
    """

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, transaction_id: str) -> Optional[Transaction]:
        """Get a transaction by its identifier"""
        return self.session.get(Transaction, transaction_id)

    def exists(self, transaction_id: str) -> bool:
        return (
            self.session.query(Transaction.id)
            .filter(Transaction.id == transaction_id)
            .first()
        ) is not None

    def add(self, **fields: Any) -> Transaction:
        """Insert a new transaction; a duplicate id raises IntegrityError on flush"""
        transaction = Transaction(**fields)
        self.session.add(transaction)
        self.session.flush()
        return transaction

    def insert_if_absent(self, **fields: Any) -> bool:
        """Insert the transaction unless one with the same id already exists.

        Returns:
            True if a row was inserted, False if the id was already taken
        """
        table = Transaction.__table__
        dialect = self.session.get_bind().dialect.name
        conflict_insert = _CONFLICT_INSERTS.get(dialect)
        if conflict_insert is not None:
            statement = conflict_insert(table).values(**fields).on_conflict_do_nothing(index_elements=['id'])
            return self.session.execute(statement).rowcount == 1

        if self.exists(fields['id']):
            return False
        self.session.execute(insert(table).values(**fields))
        return True

    def _filtered(
        self,
        book_id: Optional[str] = None,
        type: Optional[str] = None,
        volunteer_name: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None
    ):
        query = self.session.query(Transaction)
        if book_id:
            query = query.filter(Transaction.book_id == book_id)
        if type:
            query = query.filter(Transaction.type == type)
        if volunteer_name:
            query = query.filter(Transaction.volunteer_name.ilike(f"%{volunteer_name}%"))
        if date_from:
            query = query.filter(Transaction.date >= date_from)
        if date_to:
            query = query.filter(Transaction.date <= date_to)
        return query

    def filter(
        self,
        book_id: Optional[str] = None,
        type: Optional[str] = None,
        volunteer_name: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[Transaction], int]:
        """Filter transactions, newest business date first.

        Args:
            book_id: Only transactions for this book
            type: 'donation' or 'sale'
            volunteer_name: Case-insensitive substring of the volunteer's name
            date_from: Inclusive lower bound on the business date
            date_to: Inclusive upper bound on the business date
            limit: Maximum number of results to return
            offset: Number of records to skip

        Returns:
            Tuple of (page of transactions, total matching count)
        """
        query = self._filtered(book_id, type, volunteer_name, date_from, date_to)
        total = query.count()
        rows = (
            query
            .order_by(Transaction.date.desc(), Transaction.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return rows, total

    def for_book(self, book_id: str) -> List[Transaction]:
        return (
            self.session.query(Transaction)
            .filter(Transaction.book_id == book_id)
            .order_by(Transaction.date.desc(), Transaction.id.asc())
            .all()
        )

    def created_since(self, since: datetime) -> List[Transaction]:
        """Transactions recorded after the watermark, oldest first"""
        return (
            self.session.query(Transaction)
            .filter(Transaction.created_at > since)
            .order_by(Transaction.created_at.asc(), Transaction.id.asc())
            .all()
        )

    def count_all(self) -> int:
        return self.session.query(func.count(Transaction.id)).scalar() or 0

    def last_created(self) -> Optional[datetime]:
        return self.session.query(func.max(Transaction.created_at)).scalar()

    def bucket_metrics(self, since: Optional[datetime] = None) -> Dict[str, int]:
        """Donated/sold quantities and transaction counts, optionally for date >= since"""
        query = self.session.query(
            _sum_of(_DONATION),
            _sum_of(_SALE),
            _count_of(_DONATION),
            _count_of(_SALE),
            func.count(Transaction.id)
        )
        if since is not None:
            query = query.filter(Transaction.date >= since)
        donated, sold, donations, sales, total = query.one()
        return {
            'books_donated': int(donated),
            'books_sold': int(sold),
            'donation_transactions': int(donations),
            'sale_transactions': int(sales),
            'total_transactions': int(total)
        }

    def recent_with_books(self, since: datetime, limit: int = 20) -> List[Tuple[Transaction, str, str]]:
        """Newest transactions since the cutoff with their book's title and author"""
        return (
            self.session.query(Transaction, Book.title, Book.author)
            .join(Book, Transaction.book_id == Book.id)
            .filter(Transaction.date >= since)
            .order_by(Transaction.date.desc(), Transaction.id.asc())
            .limit(limit)
            .all()
        )

    def top_selling(self, since: datetime, limit: int = 10) -> List[Dict[str, Any]]:
        """Books ranked by quantity sold since the cutoff"""
        total_sold = func.sum(Transaction.quantity).label('total_sold')
        rows = (
            self.session.query(Book.id, Book.title, Book.author, Book.isbn, total_sold)
            .join(Transaction, Transaction.book_id == Book.id)
            .filter(Transaction.type == _SALE, Transaction.date >= since)
            .group_by(Book.id, Book.title, Book.author, Book.isbn)
            .order_by(total_sold.desc(), Book.title.asc())
            .limit(limit)
            .all()
        )
        return [
            {
                'id': row.id,
                'title': row.title,
                'author': row.author,
                'isbn': row.isbn,
                'total_sold': int(row.total_sold)
            }
            for row in rows
        ]

    def daily_stats(self, since: datetime) -> List[Dict[str, Any]]:
        """Donated and sold quantities per calendar day since the cutoff, newest day first"""
        day = func.date(Transaction.date).label('day')
        rows = (
            self.session.query(day, _sum_of(_DONATION), _sum_of(_SALE))
            .filter(Transaction.date >= since)
            .group_by(day)
            .order_by(day.desc())
            .all()
        )
        return [
            {'date': str(row[0]), 'donations': int(row[1]), 'sales': int(row[2])}
            for row in rows
        ]

    def ledger_quantities(self) -> Dict[str, int]:
        """Map of book id to donations minus sales, replayed from the ledger"""
        net = func.sum(
            case((Transaction.type == _DONATION, Transaction.quantity), else_=-Transaction.quantity)
        )
        return {
            book_id: int(total)
            for book_id, total in self.session.query(Transaction.book_id, net).group_by(Transaction.book_id)
        }
