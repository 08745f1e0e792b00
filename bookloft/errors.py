# bookloft/errors.py
"""Error taxonomy shared by the ledger, the sync reconciler and the catalog.

Every failure an operation reports is one of these. ``code`` is the stable
machine-readable name the HTTP layer and the sync error list expose; only
``InternalError`` is safe for a caller to retry.
"""

class BookloftError(Exception):
    code = "error"
    retryable = False

    def __init__(self, message: str, *, target: str | None = None):
        super().__init__(message)
        self.message = message
        self.target = target

class InvalidArgumentError(BookloftError):
    """Malformed type, quantity, date or watermark"""
    code = "invalid_argument"

class NotFoundError(BookloftError):
    """A referenced book or transaction does not exist"""
    code = "not_found"

class InsufficientStockError(BookloftError):
    """A sale would drive the book's quantity below zero"""
    code = "insufficient_stock"

    def __init__(self, book_id: str, requested: int, available: int):
        super().__init__(
            f"Insufficient quantity available: requested {requested}, in stock {available}",
            target=book_id,
        )
        self.requested = requested
        self.available = available

class ConflictError(BookloftError):
    """Duplicate business key, or a stale copy rejected during sync"""
    code = "conflict"

class InternalError(BookloftError):
    """Store unavailable or the atomic unit failed and was rolled back"""
    code = "internal"
    retryable = True
