# bookloft/services/sync.py
"""Offline-client reconciliation.

Uploads merge a client's locally recorded books and transactions item by
item: books are upserted last-write-wins under the same per-book lock the
ledger uses, transactions are inserted only if their id is new. Downloads
return everything changed after a client watermark.
"""

import logging
from typing import Any, Iterable, Mapping, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from bookloft.errors import BookloftError, ConflictError, NotFoundError
from bookloft.models import book as schemas
from bookloft.models.sync import (
    SyncBook, SyncDelta, SyncError, SyncResult, SyncStatus, SyncTransaction
)
from bookloft.sa.database import Database
from bookloft.sa.models import utcnow
from bookloft.sa.repositories import BookRepository, TransactionRepository
from bookloft.utils.locks import BookLocks
from bookloft.utils.timeutil import Timestamp, parse_timestamp, to_storage

logger = logging.getLogger(__name__)

# Columns a client upload overwrites on an existing book (isbn and created_at are fixed at insert)
BOOK_OVERWRITE_FIELDS = (
    'title', 'author', 'publisher', 'published_date', 'description',
    'thumbnail_url', 'quantity', 'updated_at',
)

def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    location = '.'.join(str(part) for part in first.get('loc', ()))
    return f"{location}: {first['msg']}" if location else first['msg']

class SyncReconciler:
    def __init__(self, database: Database, locks: Optional[BookLocks] = None, reject_stale: bool = False):
        """
        Args:
            database: Store to merge into
            locks: Per-book lock table shared with the Ledger
            reject_stale: Refuse an uploaded book whose updated_at is older than
                          the stored copy instead of overwriting it
        """
        self.database = database
        self.locks = locks if locks is not None else BookLocks()
        self.reject_stale = reject_stale

    def upload_merge(
        self,
        books: Optional[Iterable[Mapping[str, Any]]],
        transactions: Optional[Iterable[Mapping[str, Any]]],
        last_sync: Timestamp
    ) -> SyncResult:
        """Merge a client's offline changes.

        Every item is attempted on its own; failures are reported in
        ``errors`` and never stop the rest of the batch. Books are merged
        before transactions so new transactions can reference new books.

        Raises:
            InvalidArgumentError: last_sync is missing or malformed
        """
        watermark = parse_timestamp(last_sync, "last_sync")
        books = list(books or [])
        transactions = list(transactions or [])
        logger.info(
            f"Merging upload of {len(books)} books and {len(transactions)} transactions "
            f"(client last synced {watermark.isoformat()})"
        )

        result = SyncResult()
        for raw in books:
            _, error = self._attempt("book", raw, SyncBook, self._merge_book)
            if error is None:
                result.books_processed += 1
            else:
                result.errors.append(error)

        for raw in transactions:
            inserted, error = self._attempt("transaction", raw, SyncTransaction, self._merge_transaction)
            if error is not None:
                result.errors.append(error)
            elif inserted:
                result.transactions_processed += 1
            else:
                result.transactions_duplicate += 1

        logger.info(
            f"Upload merged: {result.books_processed} books, {result.transactions_processed} new transactions, "
            f"{result.transactions_duplicate} duplicates, {len(result.errors)} errors"
        )
        return result

    def _attempt(self, kind: str, raw: Any, model, merge) -> Tuple[Any, Optional[SyncError]]:
        """Validate and merge one item, turning any failure into a SyncError"""
        item_id = raw.get("id") if isinstance(raw, Mapping) else getattr(raw, "id", None)
        try:
            return merge(model.model_validate(raw)), None
        except ValidationError as e:
            error = SyncError(kind=kind, id=item_id, code='invalid_argument', message=_validation_message(e))
        except BookloftError as e:
            error = SyncError(kind=kind, id=item_id, code=e.code, message=e.message)
        except SQLAlchemyError as e:
            logger.exception(f"Store failure merging {kind} {item_id}")
            error = SyncError(kind=kind, id=item_id, code='internal', message=f"Store failure: {e.__class__.__name__}")
        logger.warning(f"Sync {kind} {item_id} rejected: {error.code}: {error.message}")
        return None, error

    def _merge_book(self, payload: SyncBook) -> None:
        incoming = payload.model_dump()
        fields = {name: incoming[name] for name in BOOK_OVERWRITE_FIELDS}
        # Extended metadata is only overwritten when the client sent it
        for name in payload.model_fields_set - set(BOOK_OVERWRITE_FIELDS) - {'id', 'isbn', 'created_at'}:
            fields[name] = incoming[name]
        fields['updated_at'] = to_storage(payload.updated_at)

        with self.locks.hold(payload.id):
            with self.database.get_db() as session:
                repo = BookRepository(session)
                existing = repo.get_for_update(payload.id)
                if existing is None:
                    owner = repo.get_by_isbn(payload.isbn)
                    if owner is not None:
                        raise ConflictError(f"ISBN {payload.isbn} already belongs to book {owner.id}", target=payload.id)
                    fields['isbn'] = payload.isbn
                    fields['created_at'] = to_storage(payload.created_at)
                elif self.reject_stale and fields['updated_at'] < existing.updated_at:
                    raise ConflictError(
                        f"Stale copy: server updated_at {existing.updated_at.isoformat()} is newer",
                        target=payload.id
                    )
                _, created = repo.upsert(payload.id, fields)

        logger.debug(f"{'Inserted' if created else 'Overwrote'} book {payload.id} with quantity {payload.quantity}")

    def _merge_transaction(self, payload: SyncTransaction) -> bool:
        """Insert unless already present; returns whether a row was written"""
        with self.database.get_db() as session:
            if BookRepository(session).get_by_id(payload.book_id) is None:
                raise NotFoundError(f"Book {payload.book_id} not found", target=payload.id)
            inserted = TransactionRepository(session).insert_if_absent(
                id=payload.id,
                book_id=payload.book_id,
                type=payload.type.value,
                quantity=payload.quantity,
                date=to_storage(payload.date),
                volunteer_name=payload.volunteer_name,
                notes=payload.notes,
                # created_at is always the server's clock
                created_at=utcnow()
            )
        if not inserted:
            logger.debug(f"Transaction {payload.id} already recorded, discarded resend")
        return inserted

    def download_delta(self, since: Timestamp) -> SyncDelta:
        """Books updated and transactions recorded strictly after `since`, oldest first.

        Raises:
            InvalidArgumentError: since is missing or malformed
        """
        watermark = parse_timestamp(since, "since")
        sync_timestamp = utcnow()
        with self.database.get_db() as session:
            books = BookRepository(session).updated_since(watermark)
            transactions = TransactionRepository(session).created_since(watermark)
            delta = SyncDelta(
                books=[schemas.Book.model_validate(book) for book in books],
                transactions=[schemas.Transaction.model_validate(t) for t in transactions],
                sync_timestamp=sync_timestamp
            )
        logger.info(
            f"Delta since {watermark.isoformat()}: {len(delta.books)} books, {len(delta.transactions)} transactions"
        )
        return delta

    def sync_status(self) -> SyncStatus:
        with self.database.get_db() as session:
            books = BookRepository(session)
            transactions = TransactionRepository(session)
            return SyncStatus(
                total_books=books.count_all(),
                total_transactions=transactions.count_all(),
                last_book_update=books.last_update(),
                last_transaction=transactions.last_created(),
                server_time=utcnow()
            )
