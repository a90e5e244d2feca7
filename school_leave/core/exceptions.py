"""
Domain errors and global exception handlers.

The handlers keep stack traces away from clients and give every error
body the same ``{"detail": ..., "success": false}`` shape.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


# ── Domain errors ───────────────────────────────────────────────────
class LeaveAppError(Exception):
    """Base class for errors raised by the backend collaborators."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationMissing(LeaveAppError):
    """Backend credentials are absent; the app runs disconnected."""


class IdentityError(LeaveAppError):
    """A session could not be established or a token is invalid."""


class StoreError(LeaveAppError):
    """The document store rejected or failed a read/write."""


class DocumentNotFound(StoreError):
    """An update addressed a document id that does not exist."""


# ── Handlers ────────────────────────────────────────────────────────
def _error(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail, "success": False})


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
        headers=getattr(exc, "headers", None),
    )


async def _configuration_missing_handler(_request: Request, exc: ConfigurationMissing) -> JSONResponse:
    logger.warning("Request refused, backend not configured: %s", exc.message)
    return _error(503, exc.message)


async def _identity_error_handler(_request: Request, exc: IdentityError) -> JSONResponse:
    return _error(401, exc.message)


async def _not_found_handler(_request: Request, exc: DocumentNotFound) -> JSONResponse:
    return _error(404, exc.message)


async def _store_error_handler(_request: Request, exc: StoreError) -> JSONResponse:
    logger.error("Document store error: %s", exc.message)
    return _error(502, "Document store unavailable")


async def _rate_limit_handler(_request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return _error(429, f"Rate limit exceeded: {exc.detail}")


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return _error(500, "Internal database error")


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return _error(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ConfigurationMissing, _configuration_missing_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IdentityError, _identity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DocumentNotFound, _not_found_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StoreError, _store_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
