"""
Identity collaborator: issues anonymous or token-based sessions.

``IdentityProvider`` is shared by the whole process; each connected client
gets its own ``AuthState`` that tracks the current session and notifies
observers when it changes.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from school_leave.core.config import Settings, settings
from school_leave.core.exceptions import ConfigurationMissing, IdentityError
from school_leave.core.security import (create_session_token, decode_custom_token,
                                        decode_session_token)

logger = logging.getLogger(__name__)

SessionCallback = Callable[["SessionHandle | None"], Awaitable[None]]


@dataclass(frozen=True)
class SessionHandle:
    uid: str
    provider: str  # anonymous | custom
    token: str
    expires_at: datetime


class IdentityProvider:
    def __init__(self, cfg: Settings = settings) -> None:
        self._cfg = cfg

    @property
    def configured(self) -> bool:
        return self._cfg.backend_configured

    def _require_configured(self) -> None:
        if not self.configured:
            raise ConfigurationMissing("Backend credentials are not configured")

    async def establish_session(self, token: str | None = None) -> SessionHandle:
        """Exchange a custom token (or nothing, for anonymous) for a session."""
        self._require_configured()
        if token:
            payload = decode_custom_token(token, self._cfg)
            if payload is None:
                raise IdentityError("Invalid or expired sign-in token")
            uid, provider = str(payload["sub"]), "custom"
        else:
            uid, provider = uuid.uuid4().hex, "anonymous"

        session_token, expires_at = create_session_token(uid, provider, self._cfg)
        logger.info("Session established for %s (%s)", uid, provider)
        return SessionHandle(uid=uid, provider=provider, token=session_token, expires_at=expires_at)

    def verify(self, token: str) -> SessionHandle:
        """Resolve a bearer session token back into its handle."""
        self._require_configured()
        payload = decode_session_token(token, self._cfg)
        if payload is None:
            raise IdentityError("Could not validate session")
        return SessionHandle(
            uid=str(payload["sub"]),
            provider=payload.get("provider", "anonymous"),
            token=token,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def auth_state(self) -> "AuthState":
        return AuthState(self)


class AuthState:
    """One client's session, plus the observers interested in it."""

    def __init__(self, provider: IdentityProvider) -> None:
        self._provider = provider
        self._observers: list[SessionCallback] = []
        self.current: SessionHandle | None = None

    async def sign_in(self, token: str | None = None) -> SessionHandle:
        session = await self._provider.establish_session(token)
        await self._set(session)
        return session

    async def sign_out(self) -> None:
        if self.current is None:
            return
        logger.info("Session for %s ended", self.current.uid)
        await self._set(None)

    async def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        """Call *callback* now with the current session and on every change."""
        self._observers.append(callback)
        await callback(self.current)

        def _unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return _unsubscribe

    async def _set(self, session: SessionHandle | None) -> None:
        self.current = session
        for callback in list(self._observers):
            await callback(session)
