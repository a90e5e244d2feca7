"""
School Leave: application entry point.

This is the **only** file that assembles the app. The collaborators live
in `backend/`, the per-tab controller in `client/`, and the HTTP surface
in `api/`.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from school_leave.api.v1.api import api_router
from school_leave.api.v1.endpoints.auth import limiter
from school_leave.backend.identity import IdentityProvider
from school_leave.backend.store import DocumentStore
from school_leave.core.config import settings
from school_leave.core.exceptions import register_exception_handlers
from school_leave.db.base import Base
from school_leave.db.session import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from school_leave.models.document import Document  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Document tables initialised")

    if settings.backend_configured:
        logger.info("🚀 %s v%s started (collection %s)", settings.PROJECT_NAME, settings.VERSION,
                    settings.collection_path)
    else:
        logger.warning("🚀 %s v%s started DISCONNECTED (no backend API key)",
                       settings.PROJECT_NAME, settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title="School Leave",
        description="Student leave requests with teacher approval",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Collaborators shared by every request and live client
    application.state.identity = IdentityProvider(settings)
    application.state.store = DocumentStore(async_session_factory)
    application.state.limiter = limiter

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    # Serve frontend static files (must be last, catch-all mount)
    frontend_dir = Path(__file__).resolve().parent.parent / "frontend"
    if frontend_dir.is_dir():
        application.mount(
            "/",
            StaticFiles(directory=str(frontend_dir), html=True),
            name="frontend",
        )
        logger.info("Frontend mounted from %s", frontend_dir)

    return application


app = create_app()
