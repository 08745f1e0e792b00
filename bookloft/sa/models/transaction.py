# bookloft/sa/models/transaction.py
from datetime import datetime
from enum import Enum
from sqlalchemy import String, Integer, Text, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, generate_id, utcnow

class TransactionType(str, Enum):
    DONATION = "donation"   # Stock comes in
    SALE = "sale"           # Stock goes out

    @property
    def sign(self) -> int:
        return 1 if self is TransactionType.DONATION else -1

class Transaction(Base):
    """Immutable stock movement. Rows are only ever inserted."""
    __tablename__ = 'transactions'

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_id)
    book_id: Mapped[str] = mapped_column(ForeignKey('books.id', ondelete='CASCADE'), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    volunteer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    # Relationships
    book = relationship('Book', back_populates='transactions')

    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_transactions_quantity_positive'),
        CheckConstraint("type IN ('donation', 'sale')", name='ck_transactions_type'),

        Index('idx_transactions_book_id', 'book_id'),
        Index('idx_transactions_type', 'type'),
        Index('idx_transactions_date', 'date'),
        Index('idx_transactions_volunteer_name', 'volunteer_name'),

        # Sync watermark index
        Index('idx_transactions_created_at', 'created_at'),
    )

    def __repr__(self) -> str:
        return f"<Transaction id={self.id!r} {self.type} x{self.quantity} book={self.book_id!r}>"
