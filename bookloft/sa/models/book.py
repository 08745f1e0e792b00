# bookloft/sa/models/book.py
from sqlalchemy import String, Integer, Text, CheckConstraint, Index
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin, generate_id

# Descriptive columns a client or editor may overwrite; quantity is not one of them
METADATA_FIELDS = (
    'isbn', 'title', 'author', 'publisher', 'published_date', 'description',
    'thumbnail_url', 'binding', 'isbn_10', 'language', 'page_count',
    'dimensions', 'weight', 'edition', 'series', 'subtitle', 'categories',
    'tags', 'maturity_rating', 'format',
)

class Book(Base, TimestampMixin):
    __tablename__ = 'books'

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_id)
    isbn: Mapped[str] = mapped_column(String(13), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    author: Mapped[str] = mapped_column(String(255), nullable=False, default='')
    publisher: Mapped[str | None] = mapped_column(String(255), nullable=True)
    published_date: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    thumbnail_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Extended metadata
    binding: Mapped[str | None] = mapped_column(String(50), nullable=True)       # hardback, paperback, etc.
    isbn_10: Mapped[str | None] = mapped_column(String(10), nullable=True)
    language: Mapped[str | None] = mapped_column(String(10), nullable=True)
    page_count: Mapped[str | None] = mapped_column(String(10), nullable=True)
    dimensions: Mapped[str | None] = mapped_column(String(50), nullable=True)
    weight: Mapped[str | None] = mapped_column(String(20), nullable=True)
    edition: Mapped[str | None] = mapped_column(String(50), nullable=True)
    series: Mapped[str | None] = mapped_column(String(255), nullable=True)
    subtitle: Mapped[str | None] = mapped_column(String(500), nullable=True)
    categories: Mapped[str | None] = mapped_column(Text, nullable=True)          # JSON array
    tags: Mapped[str | None] = mapped_column(Text, nullable=True)                # JSON array
    maturity_rating: Mapped[str | None] = mapped_column(String(20), nullable=True)
    format: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Relationships
    transactions = relationship(
        'Transaction',
        back_populates='book',
        cascade='all, delete-orphan',
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint('quantity >= 0', name='ck_books_quantity_nonnegative'),

        # Search indexes
        Index('idx_books_title', 'title'),
        Index('idx_books_author', 'author'),
        Index('idx_books_quantity', 'quantity'),

        # Sync watermark index
        Index('idx_books_updated_at', 'updated_at'),
    )

    def __repr__(self) -> str:
        return f"<Book id={self.id!r} isbn={self.isbn!r} quantity={self.quantity}>"
