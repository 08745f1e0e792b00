# tests/test_services/test_ledger.py
import threading
import pytest
from datetime import datetime, timezone
from sqlalchemy.exc import OperationalError
from bookloft.errors import (
    InsufficientStockError, InternalError, InvalidArgumentError, NotFoundError
)
from bookloft.sa.models import TransactionType
from bookloft.sa.repositories import BookRepository, TransactionRepository

def _ledger_matches(database, book_id):
    with database.get_db() as session:
        stored = BookRepository(session).get_by_id(book_id).quantity
        replayed = TransactionRepository(session).ledger_quantities().get(book_id, 0)
    return stored == replayed

def test_donation_then_sales(ledger, database, sample_book):
    """Stock follows donations and sales, and an over-sale leaves it alone"""
    donation = ledger.append('donation', sample_book.id, 5)
    assert donation.type == 'donation'
    assert ledger.quantity_for(sample_book.id) == 5
    _, total = ledger.list_transactions(book_id=sample_book.id)
    assert total == 1

    ledger.append('sale', sample_book.id, 3)
    assert ledger.quantity_for(sample_book.id) == 2

    with pytest.raises(InsufficientStockError) as excinfo:
        ledger.append('sale', sample_book.id, 5)
    assert excinfo.value.available == 2
    assert excinfo.value.requested == 5
    assert ledger.quantity_for(sample_book.id) == 2
    _, total = ledger.list_transactions(book_id=sample_book.id)
    assert total == 2
    assert _ledger_matches(database, sample_book.id)

def test_append_assigns_identity_and_timestamps(ledger, sample_book):
    transaction = ledger.donate(sample_book.id, 1, volunteer_name="Alice", notes="Box from library")
    assert transaction.id
    assert transaction.created_at is not None
    assert transaction.date is not None
    assert transaction.volunteer_name == "Alice"
    assert ledger.get(transaction.id).notes == "Box from library"

def test_append_converts_aware_date_to_utc(ledger, sample_book):
    transaction = ledger.donate(sample_book.id, 1, date="2024-06-15T14:00:00+02:00")
    assert transaction.date == datetime(2024, 6, 15, 12, 0)

def test_append_bumps_book_updated_at(ledger, catalog, sample_book):
    before = catalog.get_book(sample_book.id).updated_at
    ledger.donate(sample_book.id, 2)
    assert catalog.get_book(sample_book.id).updated_at >= before

@pytest.mark.parametrize("kwargs", [
    {'type': 'loan', 'quantity': 1},
    {'type': 'sale', 'quantity': 0},
    {'type': 'donation', 'quantity': -2},
    {'type': 'donation', 'quantity': 1.5},
    {'type': 'donation', 'quantity': True},
    {'type': 'donation', 'quantity': 1, 'date': "not a date"},
])
def test_invalid_arguments(ledger, sample_book, kwargs):
    with pytest.raises(InvalidArgumentError):
        ledger.append(book_id=sample_book.id, **kwargs)
    assert ledger.quantity_for(sample_book.id) == 0

def test_unknown_book(ledger):
    with pytest.raises(NotFoundError):
        ledger.append(TransactionType.DONATION, "nonexistent_id", 1)
    with pytest.raises(NotFoundError):
        ledger.quantity_for("nonexistent_id")
    with pytest.raises(NotFoundError):
        ledger.get("nonexistent_id")

def test_sale_of_entire_stock(ledger, stocked_book):
    ledger.sell(stocked_book.id, 5)
    assert ledger.quantity_for(stocked_book.id) == 0

def test_concurrent_sales_never_oversell(ledger, database, stocked_book):
    """Ten sellers race for five copies: exactly five succeed"""
    outcomes = []
    barrier = threading.Barrier(10)

    def sell_one():
        barrier.wait()
        try:
            ledger.sell(stocked_book.id, 1)
            outcomes.append('sold')
        except InsufficientStockError:
            outcomes.append('refused')

    threads = [threading.Thread(target=sell_one) for _ in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert outcomes.count('sold') == 5
    assert outcomes.count('refused') == 5
    assert ledger.quantity_for(stocked_book.id) == 0
    assert _ledger_matches(database, stocked_book.id)

def test_interleaved_appends_keep_invariant(ledger, database, book_factory):
    """Donations and sales on two books from several threads"""
    books = [book_factory(quantity=0), book_factory(quantity=0)]

    def worker(book_id):
        for _ in range(5):
            ledger.donate(book_id, 2)
            try:
                ledger.sell(book_id, 3)
            except InsufficientStockError:
                pass

    threads = [threading.Thread(target=worker, args=(book.id,)) for book in books for _ in range(3)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    for book in books:
        assert ledger.quantity_for(book.id) >= 0
        assert _ledger_matches(database, book.id)

def test_failed_increment_leaves_no_transaction(ledger, database, sample_book, monkeypatch):
    def broken_increment(self, book_id, delta):
        raise OperationalError("UPDATE books", {}, Exception("disk I/O error"))

    monkeypatch.setattr(BookRepository, "increment_quantity", broken_increment)

    with pytest.raises(InternalError) as excinfo:
        ledger.donate(sample_book.id, 3)
    assert excinfo.value.retryable is True

    monkeypatch.undo()
    _, total = ledger.list_transactions(book_id=sample_book.id)
    assert total == 0
    assert ledger.quantity_for(sample_book.id) == 0

def test_failed_insert_leaves_quantity_unchanged(ledger, stocked_book, monkeypatch):
    def broken_add(self, **fields):
        raise OperationalError("INSERT INTO transactions", {}, Exception("disk I/O error"))

    monkeypatch.setattr(TransactionRepository, "add", broken_add)

    with pytest.raises(InternalError):
        ledger.sell(stocked_book.id, 2)

    monkeypatch.undo()
    assert ledger.quantity_for(stocked_book.id) == 5
    _, total = ledger.list_transactions(book_id=stocked_book.id)
    assert total == 1

def test_list_transactions_filters(ledger, stocked_book):
    ledger.sell(stocked_book.id, 1, volunteer_name="Bob", date=datetime(2024, 1, 10, tzinfo=timezone.utc))
    ledger.sell(stocked_book.id, 2, volunteer_name="Carol", date=datetime(2024, 2, 10, tzinfo=timezone.utc))

    sales, total = ledger.list_transactions(type='sale')
    assert total == 2
    assert sales[0].volunteer_name == "Carol"

    _, total = ledger.list_transactions(date_from="2024-02-01T00:00:00Z", date_to="2024-02-28T00:00:00Z")
    assert total == 1

    page, total = ledger.list_transactions(page=2, limit=2)
    assert total == 3
    assert len(page) == 1

    with pytest.raises(InvalidArgumentError):
        ledger.list_transactions(type='loan')
    with pytest.raises(InvalidArgumentError):
        ledger.list_transactions(page=0)
