# api/routes/books.py

from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from bookloft.models.book import Book, BookCreate, BookHistory, BookUpdate
from bookloft.services.analytics import Analytics
from bookloft.services.catalog import Catalog
from api.dependencies import get_analytics, get_catalog, get_volunteer_name
from api.schemas import BookPage, Envelope, Message, Pagination

router = APIRouter(prefix="/books", tags=["books"])

@router.get("", response_model=Envelope[BookPage])
def list_books(
    search: Optional[str] = Query(None, max_length=255, description="Match title, author or ISBN"),
    available_only: bool = Query(False, description="Only books in stock"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(50, ge=1, le=100, description="Items per page"),
    catalog: Catalog = Depends(get_catalog)
):
    books, total = catalog.search(search=search, available_only=available_only, page=page, limit=limit)
    return Envelope(data=BookPage(
        books=[Book.model_validate(b) for b in books],
        pagination=Pagination.build(page, limit, total)
    ))

@router.get("/isbn/{isbn}", response_model=Envelope[Book])
def get_book_by_isbn(isbn: str, catalog: Catalog = Depends(get_catalog)):
    return Envelope(data=Book.model_validate(catalog.get_by_isbn(isbn)))

@router.get("/{book_id}", response_model=Envelope[Book])
def get_book(book_id: str, catalog: Catalog = Depends(get_catalog)):
    return Envelope(data=Book.model_validate(catalog.get_book(book_id)))

@router.post("", response_model=Envelope[Book], status_code=status.HTTP_201_CREATED)
def create_book(
    body: BookCreate,
    catalog: Catalog = Depends(get_catalog),
    volunteer_name: Optional[str] = Depends(get_volunteer_name)
):
    """Add a book; opening stock is recorded as a donation"""
    fields = body.model_dump(exclude_none=True)
    book = catalog.add_book(
        isbn=fields.pop('isbn'),
        title=fields.pop('title'),
        author=fields.pop('author', ''),
        quantity=fields.pop('quantity', 0),
        volunteer_name=volunteer_name,
        **fields
    )
    return Envelope(data=Book.model_validate(book))

@router.put("/{book_id}", response_model=Envelope[Book])
def update_book(book_id: str, body: BookUpdate, catalog: Catalog = Depends(get_catalog)):
    book = catalog.update_book(book_id, **body.model_dump(exclude_unset=True))
    return Envelope(data=Book.model_validate(book))

@router.delete("/{book_id}", response_model=Envelope[Message])
def delete_book(book_id: str, catalog: Catalog = Depends(get_catalog)):
    catalog.delete_book(book_id)
    return Envelope(data=Message(message="Book deleted successfully"))

@router.get("/{book_id}/transactions", response_model=Envelope[BookHistory])
def get_book_transactions(book_id: str, analytics: Analytics = Depends(get_analytics)):
    return Envelope(data=analytics.book_analytics(book_id))
