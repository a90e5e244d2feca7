"""
Live query: keeps a client's list of leave requests in step with the store.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from pydantic import ValidationError

from school_leave.backend.store import DocumentSnapshot, DocumentStore, Subscription
from school_leave.schemas.leave import LeaveRequest, sort_newest_first

logger = logging.getLogger(__name__)


def records_from_snapshot(docs: Iterable[DocumentSnapshot]) -> list[LeaveRequest]:
    """Parse documents into records, newest first; malformed ones are skipped."""
    records = []
    for doc in docs:
        try:
            records.append(LeaveRequest.from_document(doc.id, doc.data))
        except ValidationError as exc:
            logger.warning("Skipping malformed leave request %s: %d error(s)", doc.id, exc.error_count())
    return sort_newest_first(records)


class LiveQuery:
    """One standing subscription; every push replaces the whole list."""

    def __init__(
        self,
        store: DocumentStore,
        path: str,
        on_records: Callable[[list[LeaveRequest]], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        self._store = store
        self._path = path
        self._on_records = on_records
        self._on_error = on_error
        self._subscription: Subscription | None = None

    @property
    def active(self) -> bool:
        return self._subscription is not None and self._subscription.active

    async def start(self) -> None:
        if self._subscription is not None:
            return
        self._subscription = await self._store.subscribe(
            self._path, self._handle_snapshot, self._handle_error
        )

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def _handle_snapshot(self, docs: list[DocumentSnapshot]) -> None:
        self._on_records(records_from_snapshot(docs))

    async def _handle_error(self, exc: Exception) -> None:
        logger.warning("Live query on %s failed: %s", self._path, exc)
        self._on_error(exc)
