"""
JWT session and custom-token creation / verification.

Tokens are HS256-signed with the backend API key, so a deployment without
an API key cannot mint or verify sessions at all.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from school_leave.core.config import Settings, settings

_ALGORITHM = "HS256"


# ── Session tokens ──────────────────────────────────────────────────
def create_session_token(
    uid: str,
    provider: str,
    cfg: Settings = settings,
    expires_delta: timedelta | None = None,
) -> tuple[str, datetime]:
    """Sign a session token for *uid*; returns ``(token, expires_at)``."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=cfg.SESSION_TOKEN_EXPIRE_MINUTES)
    )
    token = jwt.encode(
        {
            "exp": expire,
            "sub": uid,
            "iss": cfg.BACKEND_AUTH_DOMAIN,
            "aud": cfg.BACKEND_PROJECT_ID,
            "provider": provider,
            "type": "session",
        },
        cfg.BACKEND_API_KEY,
        algorithm=_ALGORITHM,
    )
    return token, expire


def decode_session_token(token: str, cfg: Settings = settings) -> dict[str, Any] | None:
    """Return payload dict if *session* token is valid, else ``None``."""
    if not cfg.backend_configured:
        return None
    try:
        payload = jwt.decode(
            token,
            cfg.BACKEND_API_KEY,
            algorithms=[_ALGORITHM],
            audience=cfg.BACKEND_PROJECT_ID,
            issuer=cfg.BACKEND_AUTH_DOMAIN,
        )
    except JWTError:
        return None
    if payload.get("type") != "session":
        return None
    return payload


# ── Custom (pre-provisioned) tokens ─────────────────────────────────
def create_custom_token(
    uid: str,
    cfg: Settings = settings,
    expires_delta: timedelta = timedelta(hours=1),
) -> str:
    """Mint a token that can later be exchanged for a session of *uid*."""
    expire = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(
        {"exp": expire, "sub": uid, "aud": cfg.BACKEND_PROJECT_ID, "type": "custom"},
        cfg.BACKEND_API_KEY,
        algorithm=_ALGORITHM,
    )


def decode_custom_token(token: str, cfg: Settings = settings) -> dict[str, Any] | None:
    """Return payload dict if *custom* token is valid, else ``None``."""
    if not cfg.backend_configured:
        return None
    try:
        payload = jwt.decode(
            token, cfg.BACKEND_API_KEY, algorithms=[_ALGORITHM], audience=cfg.BACKEND_PROJECT_ID
        )
    except JWTError:
        return None
    if payload.get("type") != "custom" or not payload.get("sub"):
        return None
    return payload
