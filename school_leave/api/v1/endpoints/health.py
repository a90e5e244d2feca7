"""Public health check: backend credentials and database connectivity."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from school_leave.api.v1.deps import get_db, get_identity, get_store
from school_leave.backend.identity import IdentityProvider
from school_leave.backend.store import DocumentStore
from school_leave.core.config import settings
from school_leave.schemas.session import HealthResponse

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health(
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
) -> HealthResponse:
    result = HealthResponse(
        backend_configured=identity.configured,
        db=False,
        collection=settings.collection_path,
        subscribers=store.subscriber_count(settings.collection_path),
    )

    try:
        await db.execute(select(1))
        result.db = True
    except SQLAlchemyError as e:
        logger.error("Health check DB failure: %s", e)

    return result
