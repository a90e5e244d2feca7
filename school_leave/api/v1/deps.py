"""
FastAPI dependencies: collaborators, session guard and database session.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, status
from fastapi.requests import HTTPConnection
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from school_leave.backend.identity import IdentityProvider, SessionHandle
from school_leave.backend.store import DocumentStore
from school_leave.db.session import async_session_factory

bearer_scheme = HTTPBearer(auto_error=False)


# ── Collaborators (built once in create_app) ────────────────────────
def get_identity(conn: HTTPConnection) -> IdentityProvider:
    return conn.app.state.identity


def get_store(conn: HTTPConnection) -> DocumentStore:
    return conn.app.state.store


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Session guard ───────────────────────────────────────────────────
async def get_current_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    identity: IdentityProvider = Depends(get_identity),
) -> SessionHandle:
    """Resolve the Bearer session token issued by ``POST /auth/session``."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not signed in",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity.verify(credentials.credentials)
