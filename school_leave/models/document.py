"""
Document model: one row per stored JSON document.

The store is schemaless from the database's point of view: every
collection shares this table and the record body lives in ``data``.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Index, String

from school_leave.db.base import Base


def _new_document_id() -> str:
    return uuid.uuid4().hex


class Document(Base):
    __tablename__ = "documents"
    __table_args__ = (Index("ix_documents_collection_created", "collection", "created_at"),)

    id: str = Column(String(32), primary_key=True, default=_new_document_id)  # type: ignore[assignment]
    collection: str = Column(String(255), nullable=False, index=True)  # type: ignore[assignment]
    data: dict = Column(JSON, nullable=False, default=dict)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
