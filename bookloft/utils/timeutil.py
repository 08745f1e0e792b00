# bookloft/utils/timeutil.py

from datetime import datetime, timezone
from typing import Optional, Union

from bookloft.errors import InvalidArgumentError

Timestamp = Union[datetime, str]

def to_storage(value: datetime) -> datetime:
    """Convert to the naive-UTC form timestamps are stored in.

    Naive input is taken to already be UTC.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

def parse_timestamp(value: Optional[Timestamp], field: str = "timestamp") -> datetime:
    """Parse a datetime or ISO-8601 string, raising InvalidArgumentError when it is absent or malformed"""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidArgumentError(f"{field} is required", target=field)
    if isinstance(value, datetime):
        return to_storage(value)
    if not isinstance(value, str):
        raise InvalidArgumentError(f"Invalid {field} format: {value!r}", target=field)
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise InvalidArgumentError(f"Invalid {field} format: {value!r}", target=field) from None
    return to_storage(parsed)
