"""
Document store: JSON documents grouped by collection path, with live
snapshot fan-out to subscribers.

Every committed ``create`` / ``update`` re-reads the collection and pushes
the full snapshot to each subscriber of that path. There is no
compare-and-swap: concurrent writers resolve to whichever commit lands last.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from school_leave.core.exceptions import DocumentNotFound, StoreError
from school_leave.models.document import Document

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentSnapshot:
    id: str
    data: dict[str, Any] = field(default_factory=dict)


SnapshotCallback = Callable[[list[DocumentSnapshot]], Awaitable[None]]
ErrorCallback = Callable[[Exception], Awaitable[None]]


@dataclass(eq=False)
class _Listener:
    on_snapshot: SnapshotCallback
    on_error: ErrorCallback


class Subscription:
    """Handle for one standing subscription; release with ``unsubscribe()``.

    Usable as an async context manager so the listener is removed on every
    exit path.
    """

    def __init__(self, store: "DocumentStore", path: str, listener: _Listener) -> None:
        self._store = store
        self._listener = listener
        self.path = path

    @property
    def active(self) -> bool:
        return self._store._is_registered(self.path, self._listener)

    def unsubscribe(self) -> None:
        if self._store._remove(self.path, self._listener):
            logger.info("Subscription to %s released", self.path)

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *_exc: object) -> None:
        self.unsubscribe()


class DocumentStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._listeners: dict[str, list[_Listener]] = defaultdict(list)

    # ── Writes ──────────────────────────────────────────────────────
    async def create(self, path: str, record: dict[str, Any]) -> str:
        """Insert *record* under *path* and return the assigned id."""
        try:
            async with self._session_factory() as session:
                doc = Document(collection=path, data=dict(record))
                session.add(doc)
                await session.commit()
                doc_id = doc.id
        except SQLAlchemyError as exc:
            logger.error("Create in %s failed: %s", path, exc)
            raise StoreError(f"Could not create document in {path}") from exc

        logger.info("Created document %s in %s", doc_id, path)
        await self._broadcast(path)
        return doc_id

    async def update(self, path: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Merge *fields* into an existing document."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Document).where(Document.collection == path, Document.id == doc_id)
                )
                doc = result.scalar_one_or_none()
                if doc is None:
                    raise DocumentNotFound(f"Document {doc_id} not found")
                # Reassign so the JSON column is flagged dirty
                doc.data = {**doc.data, **fields}
                await session.commit()
        except SQLAlchemyError as exc:
            logger.error("Update of %s/%s failed: %s", path, doc_id, exc)
            raise StoreError(f"Could not update document {doc_id}") from exc

        logger.info("Updated document %s in %s: %s", doc_id, path, sorted(fields))
        await self._broadcast(path)

    # ── Reads ───────────────────────────────────────────────────────
    async def snapshot(self, path: str) -> list[DocumentSnapshot]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Document)
                    .where(Document.collection == path)
                    .order_by(Document.created_at)
                )
                docs = result.scalars().all()
        except SQLAlchemyError as exc:
            logger.error("Snapshot of %s failed: %s", path, exc)
            raise StoreError(f"Could not read {path}") from exc
        return [DocumentSnapshot(id=d.id, data=dict(d.data or {})) for d in docs]

    async def get(self, path: str, doc_id: str) -> DocumentSnapshot:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Document).where(Document.collection == path, Document.id == doc_id)
                )
                doc = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            logger.error("Read of %s/%s failed: %s", path, doc_id, exc)
            raise StoreError(f"Could not read document {doc_id}") from exc
        if doc is None:
            raise DocumentNotFound(f"Document {doc_id} not found")
        return DocumentSnapshot(id=doc.id, data=dict(doc.data or {}))

    # ── Live queries ────────────────────────────────────────────────
    async def subscribe(
        self,
        path: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Subscription:
        """Register a listener and deliver the current snapshot to it."""
        listener = _Listener(on_snapshot=on_snapshot, on_error=on_error)
        self._listeners[path].append(listener)
        logger.info("Subscription to %s opened (%d active)", path, len(self._listeners[path]))
        await self._deliver(path, [listener])
        return Subscription(self, path, listener)

    def subscriber_count(self, path: str) -> int:
        return len(self._listeners.get(path, ()))

    async def _broadcast(self, path: str) -> None:
        listeners = list(self._listeners.get(path, ()))
        if listeners:
            await self._deliver(path, listeners)

    async def _deliver(self, path: str, listeners: Iterable[_Listener]) -> None:
        try:
            docs = await self.snapshot(path)
        except StoreError as exc:
            for listener in listeners:
                if self._is_registered(path, listener):
                    await listener.on_error(exc)
            return

        for listener in listeners:
            # A listener may have unsubscribed while an earlier one ran
            if not self._is_registered(path, listener):
                continue
            try:
                await listener.on_snapshot(list(docs))
            except Exception:
                logger.exception("Snapshot listener on %s failed", path)

    def _is_registered(self, path: str, listener: _Listener) -> bool:
        return listener in self._listeners.get(path, ())

    def _remove(self, path: str, listener: _Listener) -> bool:
        listeners = self._listeners.get(path)
        if not listeners or listener not in listeners:
            return False
        listeners.remove(listener)
        if not listeners:
            del self._listeners[path]
        return True
