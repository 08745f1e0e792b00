# tests/test_repositories/test_book_repository.py
import pytest
from datetime import datetime, timedelta
from sqlalchemy.exc import IntegrityError
from bookloft.sa.models import Book, Transaction
from bookloft.sa.repositories import BookRepository

@pytest.fixture
def book_repo(db_session):
    """Fixture to create a BookRepository instance"""
    return BookRepository(db_session)

def test_get_by_id(book_repo, sample_book):
    book = book_repo.get_by_id(sample_book.id)
    assert book is not None
    assert book.title == "Pride and Prejudice"

def test_get_by_isbn(book_repo, sample_book):
    assert book_repo.get_by_isbn("9780141439518").id == sample_book.id
    assert book_repo.get_by_isbn("0000000000000") is None

def test_get_for_update_missing(book_repo):
    assert book_repo.get_for_update("nonexistent_id") is None

def test_search_matches_title_author_and_isbn(book_repo, multiple_books):
    assert [b.title for b in book_repo.search("Book 03")] == ["Book 03"]
    assert len(book_repo.search("author 1")) == 4
    assert len(book_repo.search("9780000000005")) == 1

def test_search_orders_by_title_and_paginates(book_repo, multiple_books):
    first_page = book_repo.search(limit=5)
    second_page = book_repo.search(limit=5, offset=5)
    assert [b.title for b in first_page] == [f"Book {i:02d}" for i in range(5)]
    assert [b.title for b in second_page] == [f"Book {i:02d}" for i in range(5, 10)]

def test_search_available_only(book_repo, multiple_books):
    books = book_repo.search(available_only=True)
    assert all(b.quantity > 0 for b in books)
    assert book_repo.count(available_only=True) == 11
    assert book_repo.count() == 12

def test_create_defaults(book_repo, db_session):
    book = book_repo.create(isbn="9781234567897", title="Defaults")
    db_session.commit()
    assert book.id
    assert book.quantity == 0
    assert book.author == ''
    assert book.created_at is not None
    assert book.updated_at is not None

def test_duplicate_isbn_rejected(book_repo, sample_book):
    with pytest.raises(IntegrityError):
        book_repo.create(isbn=sample_book.isbn, title="Copy")

def test_update_metadata_ignores_quantity(book_repo, db_session, sample_book):
    before = sample_book.updated_at
    book = book_repo.update_metadata(sample_book, {'title': "Emma", 'quantity': 99})
    db_session.commit()
    assert book.title == "Emma"
    assert book.quantity == 0
    assert book.updated_at >= before

def test_increment_quantity(book_repo, db_session, sample_book):
    assert book_repo.increment_quantity(sample_book.id, 3) is True
    db_session.commit()
    db_session.refresh(sample_book)
    assert sample_book.quantity == 3

def test_increment_quantity_refuses_negative(book_repo, db_session, sample_book):
    assert book_repo.increment_quantity(sample_book.id, -1) is False
    db_session.commit()
    db_session.refresh(sample_book)
    assert sample_book.quantity == 0

def test_increment_quantity_missing_book(book_repo):
    assert book_repo.increment_quantity("nonexistent_id", 1) is False

def test_upsert_inserts_then_overwrites(book_repo, db_session):
    stamp = datetime(2024, 5, 1, 12, 0)
    book, created = book_repo.upsert("client-1", {
        'isbn': "9781111111111", 'title': "First", 'author': "A",
        'quantity': 2, 'created_at': stamp, 'updated_at': stamp
    })
    db_session.commit()
    assert created is True
    assert book.id == "client-1"

    book, created = book_repo.upsert("client-1", {'title': "Second", 'quantity': 7, 'updated_at': stamp})
    db_session.commit()
    assert created is False
    assert book.title == "Second"
    assert book.quantity == 7
    assert book.updated_at == stamp

def test_updated_since_is_strict_and_ordered(book_repo, multiple_books):
    watermark = datetime(2024, 1, 1) + timedelta(hours=9)
    books = book_repo.updated_since(watermark)
    assert [b.title for b in books] == ["Book 10", "Book 11"]

def test_aggregates(book_repo, multiple_books):
    assert book_repo.count_all() == 12
    assert book_repo.total_quantity() == sum(range(12))
    assert book_repo.count_with_quantity_above(0) == 11
    assert book_repo.count_with_quantity_above(1) == 10
    assert book_repo.last_update() == datetime(2024, 1, 1) + timedelta(hours=11)

def test_multiple_copies_and_out_of_stock(book_repo, multiple_books):
    multiple = book_repo.with_multiple_copies()
    assert multiple[0].quantity == 11
    assert all(b.quantity > 1 for b in multiple)
    assert [b.title for b in book_repo.out_of_stock()] == ["Book 00"]

def test_delete_cascades_to_transactions(book_repo, db_session, stocked_book):
    book = book_repo.get_by_id(stocked_book.id)
    book_repo.delete(book)
    db_session.commit()
    assert db_session.query(Book).filter(Book.id == stocked_book.id).count() == 0
    assert db_session.query(Transaction).filter(Transaction.book_id == stocked_book.id).count() == 0

def test_writes_move_updated_at_past_a_future_value(book_repo, db_session):
    future = datetime(2030, 1, 1)
    book, _ = book_repo.upsert("client-2", {
        'isbn': "9782222222222", 'title': "Ahead", 'author': "",
        'quantity': 1, 'created_at': future, 'updated_at': future
    })
    db_session.commit()

    assert book_repo.increment_quantity("client-2", 1) is True
    db_session.commit()
    db_session.refresh(book)
    assert book.updated_at > future

    touched = book.updated_at
    book_repo.update_metadata(book, {'title': "Still ahead"})
    db_session.commit()
    assert book.updated_at > touched
