# bookloft/sa/models/base.py
import uuid
from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import DeclarativeBase, mapped_column, Mapped
from sqlalchemy import DateTime

def utcnow() -> datetime:
    """Current UTC time as stored: naive, so values compare the same before and after a round trip"""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def touched_after(previous: datetime | None) -> datetime:
    """Next updated_at for a row last touched at `previous`.

    Never earlier than `previous`, which a client upload may have set ahead of the server clock.
    """
    now = utcnow()
    if previous is not None and previous >= now:
        return previous + timedelta(microseconds=1)
    return now

def generate_id() -> str:
    """Globally unique primary key for books and transactions"""
    return uuid.uuid4().hex

class Base(DeclarativeBase):
    """Base class for all models"""
    pass

class TimestampMixin:
    """Mixin to add created_at and updated_at columns"""
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
