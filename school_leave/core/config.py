"""
Centralised application settings loaded from environment / .env file.

Uses pydantic-settings so every value can be overridden via env vars
or the .env file at the project root.
"""

from __future__ import annotations

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Project ──────────────────────────────────────────────────────
    PROJECT_NAME: str = "School Leave Requests"
    VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"

    # ── Backend connection (identity + document store) ──────────────
    BACKEND_API_KEY: str | None = None
    BACKEND_AUTH_DOMAIN: str = "school-leave.local"
    BACKEND_PROJECT_ID: str = "school-leave"
    BACKEND_STORAGE_BUCKET: str | None = None
    BACKEND_MESSAGING_SENDER_ID: str | None = None
    BACKEND_APP_ID: str = "school-leave-app"

    # Pre-provisioned custom token; anonymous sign-in when unset
    INITIAL_AUTH_TOKEN: str | None = None
    SESSION_TOKEN_EXPIRE_MINUTES: int = 12 * 60

    # ── Document storage (async SQLAlchemy) ─────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./school_leave.db"

    # ── CORS ─────────────────────────────────────────────────────────
    CORS_ORIGINS: list[str] = [
        "http://localhost",
        "http://localhost:8000",
        "http://127.0.0.1",
        "http://127.0.0.1:8000",
    ]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors(cls, v: object) -> list[str]:
        if isinstance(v, str) and not v.lstrip().startswith("["):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v  # type: ignore[return-value]

    @field_validator("BACKEND_API_KEY", "INITIAL_AUTH_TOKEN", mode="before")
    @classmethod
    def _blank_is_unset(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    # ── Client behaviour ────────────────────────────────────────────
    NOTIFICATION_TTL_SECONDS: float = 3.0

    # ── Rate limiting (slowapi) ─────────────────────────────────────
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_SESSION: str = "10/minute"

    # ── Logging ──────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @property
    def backend_configured(self) -> bool:
        return self.BACKEND_API_KEY is not None

    @property
    def collection_path(self) -> str:
        """The single shared leave-request collection for this deployment."""
        return f"artifacts/{self.BACKEND_APP_ID}/public/data/leave_requests"


settings = Settings()

if not settings.backend_configured:
    logging.getLogger("school_leave.core.config").warning(
        "⚠️  BACKEND_API_KEY is not set: sessions cannot be established and "
        "live sync / writes are disabled. Check your .env file."
    )
