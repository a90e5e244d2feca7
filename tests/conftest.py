"""
Shared test fixtures for the School Leave test suite.

Async throughout (aiosqlite + AsyncSession); the live-client tests swap
in ``MemoryStore`` so failures can be injected on demand.
"""

import os
import sys
import uuid
from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["BACKEND_API_KEY"] = "test-api-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
# Notifications stay put so tests can read them
os.environ["NOTIFICATION_TTL_SECONDS"] = "0"
os.environ.pop("INITIAL_AUTH_TOKEN", None)

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from school_leave.api.v1.deps import get_db, get_store
from school_leave.backend.identity import IdentityProvider
from school_leave.backend.store import DocumentSnapshot, DocumentStore
from school_leave.client.controller import LeaveClient
from school_leave.core.config import settings
from school_leave.core.exceptions import DocumentNotFound, StoreError
from school_leave.db.base import Base
from school_leave.main import app

# Create a test engine for the entire session
test_engine = create_async_engine(
    "sqlite+aiosqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

FIXED_NOW = datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
async def setup_db():
    """Create all tables before usage and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestingSessionLocal() as session:
        yield session


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture(autouse=True)
def store() -> DocumentStore:
    """A SQL-backed store on the test engine, also served to the app."""
    sql_store = DocumentStore(TestingSessionLocal)
    app.dependency_overrides[get_store] = lambda: sql_store
    yield sql_store
    app.dependency_overrides.pop(get_store, None)


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def session_headers(async_client: AsyncClient) -> dict[str, str]:
    """Bearer header for a fresh anonymous session."""
    resp = await async_client.post("/api/v1/auth/session")
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def identity() -> IdentityProvider:
    return IdentityProvider(settings)


# ── In-memory store with failure injection ──────────────────────────
class MemoryStore(DocumentStore):
    """DocumentStore whose persistence is a dict; fan-out is inherited."""

    def __init__(self) -> None:
        super().__init__(session_factory=None)  # type: ignore[arg-type]
        self.collections: dict[str, dict[str, dict]] = {}
        self.fail_creates = False
        self.fail_updates = False
        self.fail_snapshots = False
        self.calls: list[tuple[str, str]] = []

    def seed(self, path: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex
        self.collections.setdefault(path, {})[doc_id] = dict(data)
        return doc_id

    async def create(self, path: str, record: dict) -> str:
        self.calls.append(("create", path))
        if self.fail_creates:
            raise StoreError("network unreachable")
        doc_id = self.seed(path, record)
        await self._broadcast(path)
        return doc_id

    async def update(self, path: str, doc_id: str, fields: dict) -> None:
        self.calls.append(("update", doc_id))
        if self.fail_updates:
            raise StoreError("network unreachable")
        docs = self.collections.get(path, {})
        if doc_id not in docs:
            raise DocumentNotFound(f"Document {doc_id} not found")
        docs[doc_id] = {**docs[doc_id], **fields}
        await self._broadcast(path)

    async def snapshot(self, path: str) -> list[DocumentSnapshot]:
        if self.fail_snapshots:
            raise StoreError("listen failed")
        # Oldest first: the client must do its own ordering
        return [DocumentSnapshot(id=k, data=dict(v)) for k, v in self.collections.get(path, {}).items()]

    async def get(self, path: str, doc_id: str) -> DocumentSnapshot:
        docs = self.collections.get(path, {})
        if doc_id not in docs:
            raise DocumentNotFound(f"Document {doc_id} not found")
        return DocumentSnapshot(id=doc_id, data=dict(docs[doc_id]))


def leave_document(**overrides) -> dict:
    """A stored leave-request body, camelCase as the store keeps it."""
    data = {
        "studentName": "Mg Mg",
        "studentId": "STU-001",
        "leaveType": "sick",
        "startDate": "2024-01-01",
        "endDate": "2024-01-03",
        "totalDays": 3,
        "missedSubjects": "Maths",
        "reason": "flu",
        "status": "pending",
        "requestDate": "2024-01-01",
        "timestamp": 1_704_067_200_000,
    }
    data.update(overrides)
    return data


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def make_document():
    return leave_document


@pytest.fixture
def make_client(identity: IdentityProvider, memory_store: MemoryStore):
    """Factory for live clients on the memory store, with a fixed clock."""

    def _make(**kwargs) -> LeaveClient:
        kwargs.setdefault("clock", lambda: FIXED_NOW)
        return LeaveClient(identity, kwargs.pop("store", memory_store), settings, **kwargs)

    return _make
