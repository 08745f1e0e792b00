# bookloft/services/analytics.py
"""Read-only summaries over the ledger.

Every figure is aggregated from the ``transactions`` and ``books`` tables
when asked for; there are no separate counters to drift.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from bookloft.errors import InvalidArgumentError, NotFoundError
from bookloft.models import book as schemas
from bookloft.sa.database import Database
from bookloft.sa.models import TransactionType, utcnow
from bookloft.sa.repositories import BookRepository, TransactionRepository
from bookloft.utils.timeutil import to_storage

def sales_rate(total_donations: int, total_sales: int) -> float:
    """Sales as a percentage of all copies moved, one decimal; 0 with no history"""
    movement = total_donations + total_sales
    if movement == 0:
        return 0.0
    return round(total_sales / movement * 100, 1)

def bucket_starts(now: datetime) -> Dict[str, datetime]:
    """Start of today, this week (Sunday), this month and this year"""
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return {
        'today': today,
        'this_week': today - timedelta(days=(today.weekday() + 1) % 7),
        'this_month': today.replace(day=1),
        'this_year': today.replace(month=1, day=1)
    }

class Analytics:
    def __init__(self, database: Database):
        self.database = database

    def inventory_summary(self) -> Dict[str, Any]:
        with self.database.get_db() as session:
            books = BookRepository(session)
            totals = TransactionRepository(session).bucket_metrics()
            summary = {
                'total_books': books.count_all(),
                'total_quantity': int(books.total_quantity()),
                'available_books': books.count_with_quantity_above(0),
                'books_with_multiple_copies': books.count_with_quantity_above(1),
                'total_donations': totals['books_donated'],
                'total_sales': totals['books_sold'],
                'last_updated': utcnow()
            }
        summary['sales_rate'] = sales_rate(summary['total_donations'], summary['total_sales'])
        return summary

    def time_based(self, now: Optional[datetime] = None) -> Dict[str, Dict[str, int]]:
        """Donation and sale metrics for today, this week, this month and this year"""
        now = to_storage(now) if now is not None else utcnow()
        with self.database.get_db() as session:
            repo = TransactionRepository(session)
            return {
                bucket: repo.bucket_metrics(since=start)
                for bucket, start in bucket_starts(now).items()
            }

    def period_analytics(self, days: int = 30, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Activity over the trailing `days` days.

        Args:
            days: Window length, at least 1
            now: End of the window; defaults to the current time

        Returns:
            Dictionary with recent_transactions, top_selling_books, daily_stats and period_days
        """
        if isinstance(days, bool) or not isinstance(days, int) or days < 1:
            raise InvalidArgumentError("period must be a positive number of days", target="period")
        now = to_storage(now) if now is not None else utcnow()
        cutoff = now - timedelta(days=days)

        with self.database.get_db() as session:
            repo = TransactionRepository(session)
            recent = [
                {
                    **schemas.Transaction.model_validate(transaction).model_dump(),
                    'title': title,
                    'author': author
                }
                for transaction, title, author in repo.recent_with_books(cutoff, limit=20)
            ]
            return {
                'recent_transactions': recent,
                'top_selling_books': repo.top_selling(cutoff, limit=10),
                'daily_stats': repo.daily_stats(cutoff),
                'period_days': days
            }

    def book_analytics(self, book_id: str) -> schemas.BookHistory:
        """A book's transactions and how often it was donated and sold"""
        with self.database.get_db() as session:
            if BookRepository(session).get_by_id(book_id) is None:
                raise NotFoundError("Book not found", target=book_id)
            transactions = TransactionRepository(session).for_book(book_id)
            donations = [t for t in transactions if t.type == TransactionType.DONATION.value]
            sales = [t for t in transactions if t.type == TransactionType.SALE.value]
            return schemas.BookHistory(
                transactions=[schemas.Transaction.model_validate(t) for t in transactions],
                analytics=schemas.BookTransactionAnalytics(
                    total_transactions=len(transactions),
                    times_donated=sum(t.quantity for t in donations),
                    times_sold=sum(t.quantity for t in sales),
                    donation_count=len(donations),
                    sale_count=len(sales)
                )
            )

    def multiple_copies(self) -> List[schemas.Book]:
        with self.database.get_db() as session:
            return [schemas.Book.model_validate(b) for b in BookRepository(session).with_multiple_copies()]

    def out_of_stock(self) -> List[schemas.Book]:
        with self.database.get_db() as session:
            return [schemas.Book.model_validate(b) for b in BookRepository(session).out_of_stock()]

    def audit(self) -> List[Dict[str, Any]]:
        """Books whose stored quantity differs from donations minus sales"""
        with self.database.get_db() as session:
            stored = BookRepository(session).all_quantities()
            replayed = TransactionRepository(session).ledger_quantities()

        return [
            {
                'book_id': book_id,
                'stored_quantity': quantity,
                'ledger_quantity': replayed.get(book_id, 0)
            }
            for book_id, quantity in sorted(stored.items())
            if quantity != replayed.get(book_id, 0)
        ]
