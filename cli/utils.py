import click
import functools
import json
from typing import Any, Callable, Dict, Optional

from bookloft.errors import BookloftError
from bookloft.sa.database import Database
from bookloft.services.analytics import Analytics
from bookloft.services.catalog import Catalog
from bookloft.services.ledger import Ledger
from bookloft.services.sync import SyncReconciler
from bookloft.utils.locks import BookLocks

class Services:
    """Services for one CLI invocation, all sharing a Database and one lock table"""

    def __init__(self, database_url: Optional[str] = None, reject_stale: bool = False):
        self.database_url = database_url
        self.reject_stale = reject_stale
        self._database: Optional[Database] = None
        self.locks = BookLocks()

    @property
    def database(self) -> Database:
        if self._database is None:
            self._database = Database(self.database_url)
            self._database.init_db()
        return self._database

    @property
    def ledger(self) -> Ledger:
        return Ledger(self.database, self.locks)

    @property
    def catalog(self) -> Catalog:
        return Catalog(self.database, self.locks)

    @property
    def reconciler(self) -> SyncReconciler:
        return SyncReconciler(self.database, self.locks, reject_stale=self.reject_stale)

    @property
    def analytics(self) -> Analytics:
        return Analytics(self.database)

    def close(self) -> None:
        if self._database is not None:
            self._database.dispose()
            self._database = None

def handle_errors(func: Callable) -> Callable:
    """Print a BookloftError in red and exit with status 1"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except BookloftError as e:
            click.echo(click.style(f"Error ({e.code}): {e.message}", fg='red'), err=True)
            raise SystemExit(1)
    return wrapper

def print_book(book: Any) -> None:
    click.echo(click.style(book.title, fg='cyan') + click.style(f" by {book.author or 'Unknown'}", fg='blue'))
    click.echo(f"  ID: {book.id}")
    click.echo(f"  ISBN: {book.isbn}")
    click.echo("  Quantity: " + click.style(str(book.quantity), fg='green' if book.quantity else 'yellow'))

def print_transaction(transaction: Any) -> None:
    color = 'green' if transaction.type == 'donation' else 'magenta'
    click.echo(
        click.style(f"{transaction.type:<9}", fg=color) +
        f" x{transaction.quantity:<4} {transaction.date:%Y-%m-%d}  book={transaction.book_id}  id={transaction.id}"
        + (f"  by {transaction.volunteer_name}" if transaction.volunteer_name else "")
    )

def print_metrics(title: str, metrics: Dict[str, Any]) -> None:
    click.echo("\n" + click.style(title, fg='blue'))
    for key, value in metrics.items():
        click.echo(click.style(f"  {key.replace('_', ' ').capitalize()}: ", fg='blue') +
                   click.style(str(value), fg='cyan'))

def print_sync_result(result: Any, verbose: bool = False) -> None:
    """Print the results of a sync upload"""
    click.echo("\n" + click.style("Results:", fg='blue'))
    click.echo(click.style("Books merged: ", fg='blue') + click.style(str(result.books_processed), fg='cyan'))
    click.echo(click.style("New transactions: ", fg='blue') +
               click.style(str(result.transactions_processed), fg='green'))
    click.echo(click.style("Duplicate transactions: ", fg='blue') +
               click.style(str(result.transactions_duplicate), fg='yellow'))

    if result.errors and verbose:
        click.echo("\n" + click.style("Rejected items:", fg='yellow'))
        for error in result.errors:
            click.echo(click.style(f"{error.kind} {error.id}: ", fg='red') + f"[{error.code}] {error.message}")
    elif result.errors:
        click.echo(click.style(f"\nRejected {len(result.errors)} items. ", fg='yellow') +
                   click.style("Use --verbose to see details.", fg='blue'))

def dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, default=str)
