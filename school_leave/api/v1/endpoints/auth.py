"""
Auth endpoints: session establishment and the role gate.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from school_leave.api.v1.deps import get_current_session, get_identity
from school_leave.backend.identity import IdentityProvider, SessionHandle
from school_leave.client.roles import RoleRejected, check_login
from school_leave.core.config import settings
from school_leave.schemas.session import (RoleRead, RoleRequest, SessionRead, SessionRequest,
                                          SessionToken)

# Rate limiter, keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/session", response_model=SessionToken)
@limiter.limit(settings.RATE_LIMIT_SESSION)
async def create_session(
    request: Request,
    body: SessionRequest | None = None,
    identity: IdentityProvider = Depends(get_identity),
) -> SessionToken:
    """Anonymous session, or exchange a pre-provisioned custom token."""
    session = await identity.establish_session(body.token if body else None)
    return SessionToken(
        access_token=session.token,
        uid=session.uid,
        provider=session.provider,
        expires_at=session.expires_at,
    )


@router.get("/session", response_model=SessionRead)
async def read_session(
    session: SessionHandle = Depends(get_current_session),
) -> SessionRead:
    """Return the session behind the presented Bearer token."""
    return SessionRead(uid=session.uid, provider=session.provider, expires_at=session.expires_at)


@router.post("/role", response_model=RoleRead)
async def check_role(body: RoleRequest) -> RoleRead:
    """Apply the ID prefix convention; 400 carries the violated rule."""
    try:
        role = check_login(body.tab, body.identifier)
    except RoleRejected as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from None
    return RoleRead(role=role.kind, identifier=role.identifier)
