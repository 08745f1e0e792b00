# tests/conftest.py
import os
import sys
import pytest
from pathlib import Path
from datetime import datetime, timedelta
from sqlalchemy.sql import text

# Add project root to Python path
project_root = str(Path(__file__).parent.parent)
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from bookloft.sa.database import Database
from bookloft.sa.models import Book, generate_id, utcnow
from bookloft.services.analytics import Analytics
from bookloft.services.catalog import Catalog
from bookloft.services.ledger import Ledger
from bookloft.services.sync import SyncReconciler
from bookloft.utils.locks import BookLocks

@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory):
    """Create a temporary directory for the test database."""
    test_dir = tmp_path_factory.mktemp("test_db")
    return str(test_dir / "test_bookloft.db")

@pytest.fixture(scope="session")
def database(test_db_path):
    """Create a test database instance"""
    db = Database(f"sqlite:///{test_db_path}")

    # Drop all tables and recreate schema
    db.drop_db()
    db.init_db()

    yield db

    db.dispose()
    try:
        os.remove(test_db_path)
    except OSError:
        pass

@pytest.fixture(autouse=True)
def cleanup_db(database):
    """Clean up database tables before each test"""
    with database.get_db() as session:
        session.execute(text("DELETE FROM transactions"))
        session.execute(text("DELETE FROM books"))
    yield

@pytest.fixture(scope="function")
def db_session(database):
    """Create a new database session for a test"""
    session = database.get_session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

@pytest.fixture
def locks():
    return BookLocks()

@pytest.fixture
def ledger(database, locks):
    return Ledger(database, locks)

@pytest.fixture
def catalog(database, locks):
    return Catalog(database, locks)

@pytest.fixture
def reconciler(database, locks):
    return SyncReconciler(database, locks)

@pytest.fixture
def analytics(database):
    return Analytics(database)

def make_book(session, **overrides):
    """Insert a book directly, bypassing the ledger"""
    now = utcnow()
    fields = {
        'id': generate_id(),
        'isbn': overrides.pop('isbn', None) or generate_id()[:13],
        'title': "Test Book",
        'author': "Test Author",
        'quantity': 0,
        'created_at': now,
        'updated_at': now,
    }
    fields.update(overrides)
    book = Book(**fields)
    session.add(book)
    session.commit()
    return book

@pytest.fixture
def sample_book(db_session):
    """Create a sample book with no stock."""
    return make_book(
        db_session,
        isbn="9780141439518",
        title="Pride and Prejudice",
        author="Jane Austen",
        publisher="Penguin Classics"
    )

@pytest.fixture
def stocked_book(catalog):
    """A book whose opening stock of 5 went through the ledger."""
    return catalog.add_book(
        isbn="9780261102385",
        title="The Lord of the Rings",
        author="J.R.R. Tolkien",
        quantity=5,
        volunteer_name="Alice"
    )

@pytest.fixture
def multiple_books(db_session):
    """Create 12 books with quantities 0 to 11."""
    books = []
    base = datetime(2024, 1, 1)
    for i in range(12):
        books.append(make_book(
            db_session,
            isbn=f"97800000000{i:02d}",
            title=f"Book {i:02d}",
            author=f"Author {i % 3}",
            quantity=i,
            updated_at=base + timedelta(hours=i)
        ))
    return books

@pytest.fixture
def book_factory(db_session):
    """Insert books directly, bypassing the ledger"""
    def factory(**overrides):
        return make_book(db_session, **overrides)
    return factory
