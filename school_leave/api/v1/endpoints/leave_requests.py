"""
Leave-request endpoints: list, create and decide.

- Every route requires a session (Bearer token from ``POST /auth/session``).
- ``PATCH`` writes the status field of a pending request only (409 once
  decided). Check and write are not atomic, so two truly concurrent
  decisions still resolve last-write-wins.
"""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status

from school_leave.api.v1.deps import get_current_session, get_store
from school_leave.backend.identity import SessionHandle
from school_leave.backend.store import DocumentStore
from school_leave.client.live_query import records_from_snapshot
from school_leave.core.config import settings
from school_leave.schemas.leave import (LeaveRequest, LeaveRequestCreate, LeaveStatus, StatusUpdate,
                                        pending_document)

router = APIRouter(prefix="/leave-requests", tags=["leave-requests"])
logger = logging.getLogger(__name__)


@router.get("", response_model=list[LeaveRequest])
async def list_leave_requests(
    student_id: str | None = Query(None, max_length=64),
    store: DocumentStore = Depends(get_store),
    _session: SessionHandle = Depends(get_current_session),
) -> list[LeaveRequest]:
    """All leave requests, newest first; optionally one student's only."""
    records = records_from_snapshot(await store.snapshot(settings.collection_path))
    if student_id:
        wanted = student_id.strip().upper()
        records = [r for r in records if r.student_id == wanted]
    return records


@router.post("", response_model=LeaveRequest, status_code=201)
async def create_leave_request(
    body: LeaveRequestCreate,
    store: DocumentStore = Depends(get_store),
    session: SessionHandle = Depends(get_current_session),
) -> LeaveRequest:
    """Submit a new request; it always starts out pending."""
    data = pending_document(body, datetime.now().astimezone())
    doc_id = await store.create(settings.collection_path, data)
    logger.info("Leave request %s submitted by %s (session %s)", doc_id, body.student_id, session.uid)
    return LeaveRequest.from_document(doc_id, data)


@router.get("/{request_id}", response_model=LeaveRequest)
async def get_leave_request(
    request_id: str,
    store: DocumentStore = Depends(get_store),
    _session: SessionHandle = Depends(get_current_session),
) -> LeaveRequest:
    doc = await store.get(settings.collection_path, request_id)
    return LeaveRequest.from_document(doc.id, doc.data)


@router.patch("/{request_id}", response_model=LeaveRequest)
async def decide_leave_request(
    request_id: str,
    body: StatusUpdate,
    store: DocumentStore = Depends(get_store),
    _session: SessionHandle = Depends(get_current_session),
) -> LeaveRequest:
    """Approve or reject a pending request (status field only)."""
    current = await store.get(settings.collection_path, request_id)
    if current.data.get("status") != LeaveStatus.PENDING.value:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Leave request has already been decided",
        )
    await store.update(settings.collection_path, request_id, {"status": body.status.value})
    logger.info("Leave request %s marked %s", request_id, body.status.value)
    doc = await store.get(settings.collection_path, request_id)
    return LeaveRequest.from_document(doc.id, doc.data)
