# tests/test_services/test_catalog.py
import pytest
from bookloft.errors import ConflictError, InvalidArgumentError, NotFoundError

def test_add_book_records_opening_stock(catalog, ledger, analytics):
    book = catalog.add_book(
        isbn="9780441172719",
        title="Dune",
        author="Frank Herbert",
        quantity=3,
        volunteer_name="Alice",
        publisher="Ace",
        binding="paperback"
    )
    assert book.quantity == 3
    assert catalog.get_book(book.id).publisher == "Ace"

    transactions, total = ledger.list_transactions(book_id=book.id)
    assert total == 1
    assert transactions[0].type == 'donation'
    assert transactions[0].notes == "Initial stock"
    assert transactions[0].volunteer_name == "Alice"
    assert analytics.audit() == []

def test_add_book_without_stock_has_no_history(catalog, ledger):
    book = catalog.add_book(isbn="9780441172719", title="Dune")
    assert book.author == ''
    assert ledger.list_transactions(book_id=book.id)[1] == 0

@pytest.mark.parametrize("kwargs", [
    {'isbn': "12345", 'title': "Short ISBN"},
    {'isbn': "9780441172719", 'title': ""},
    {'isbn': "9780441172719", 'title': "Negative", 'quantity': -1},
    {'isbn': "9780441172719", 'title': "Unknown", 'shelf': "B3"},
])
def test_add_book_invalid(catalog, kwargs):
    with pytest.raises(InvalidArgumentError):
        catalog.add_book(**kwargs)

def test_add_book_duplicate_isbn(catalog, sample_book):
    with pytest.raises(ConflictError):
        catalog.add_book(isbn=sample_book.isbn, title="Another copy")

def test_get_by_isbn(catalog, sample_book):
    assert catalog.get_by_isbn(sample_book.isbn).id == sample_book.id
    with pytest.raises(NotFoundError):
        catalog.get_by_isbn("0000000000000")
    with pytest.raises(NotFoundError):
        catalog.get_book("nonexistent_id")

def test_search(catalog, multiple_books):
    books, total = catalog.search(search="Author 2", page=2, limit=2)
    assert total == 4
    assert [b.title for b in books] == ["Book 08", "Book 11"]

    _, total = catalog.search(available_only=True)
    assert total == 11

    with pytest.raises(InvalidArgumentError):
        catalog.search(limit=0)

def test_update_book(catalog, sample_book):
    updated = catalog.update_book(sample_book.id, title="Emma", description="A novel")
    assert updated.title == "Emma"
    assert updated.updated_at >= sample_book.updated_at
    assert catalog.get_book(sample_book.id).description == "A novel"

def test_update_book_rejects_quantity(catalog, sample_book):
    with pytest.raises(InvalidArgumentError):
        catalog.update_book(sample_book.id, quantity=10)

def test_update_book_isbn_conflict(catalog, sample_book, stocked_book):
    with pytest.raises(ConflictError):
        catalog.update_book(sample_book.id, isbn=stocked_book.isbn)

def test_update_unknown_book(catalog):
    with pytest.raises(NotFoundError):
        catalog.update_book("nonexistent_id", title="Nothing")

def test_delete_book_removes_history(catalog, ledger, stocked_book):
    catalog.delete_book(stocked_book.id)
    with pytest.raises(NotFoundError):
        catalog.get_book(stocked_book.id)
    assert ledger.list_transactions(book_id=stocked_book.id)[1] == 0
    with pytest.raises(NotFoundError):
        catalog.delete_book(stocked_book.id)

@pytest.mark.parametrize("fields", [{'title': None}, {'title': ""}, {'isbn': None}])
def test_update_book_required_fields(catalog, sample_book, fields):
    with pytest.raises(InvalidArgumentError):
        catalog.update_book(sample_book.id, **fields)
    assert catalog.get_book(sample_book.id).title == sample_book.title
