"""
Folio Backend — Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Every test gets a fresh in-memory database, a fake object storage, and
       two signed-in users, so tests never depend on each other.

Fixture Hierarchy (all function-scoped):
    engine ─▶ session_factory ─┬─▶ db_session        (service-level tests)
                               ├─▶ accounts          (alice, bob + sessions)
                               └─▶ client            (HTTP tests, overrides
                                                      get_db_session/get_storage)
    storage: FakeObjectStorage (in memory, can be told to fail)
    make_png: builds real PNG bytes with Pillow
"""

import io
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Set, Tuple

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run BEFORE any folio import: settings are read at import time
_tmp_dir = tempfile.mkdtemp(prefix="folio_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp_dir}/health.db"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["STORAGE_ROOT"] = os.path.join(_tmp_dir, "storage")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image as PILImage
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import folio.models  # noqa: F401
from folio.database import Base, get_db_session
from folio.exceptions import StorageError
from folio.models.user import AuthSession, User
from folio.services.storage_service import ObjectStorage, get_storage


# ══════════════════════════════════════════════════════════════════════════
# Fake object storage
# ══════════════════════════════════════════════════════════════════════════

class FakeObjectStorage(ObjectStorage):
    """
    In-memory ObjectStorage.

    Knobs:
        fail_uploads_after: uploads succeed this many times, then raise
        fail_delete_paths:  deleting any of these paths raises
    """

    name = "memory"

    def __init__(self):
        self.objects: Dict[Tuple[str, str], bytes] = {}
        self.content_types: Dict[Tuple[str, str], str] = {}
        self.uploads = 0
        self.deleted: List[str] = []
        self.fail_uploads_after: Optional[int] = None
        self.fail_delete_paths: Set[str] = set()
        self.closed = False

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        if self.fail_uploads_after is not None and self.uploads >= self.fail_uploads_after:
            raise StorageError(message="Simulated upload failure", context={"path": path})
        self.uploads += 1
        self.objects[(bucket, path)] = data
        self.content_types[(bucket, path)] = content_type
        return f"https://storage.test/{bucket}/{path}"

    async def delete(self, bucket: str, path: str) -> None:
        if path in self.fail_delete_paths:
            raise StorageError(message="Simulated delete failure", context={"path": path})
        self.objects.pop((bucket, path), None)
        self.deleted.append(path)

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        self.closed = True

    def paths(self) -> List[str]:
        return sorted(path for _, path in self.objects)


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine():
    """
    Fresh in-memory SQLite database per test, schema built from the ORM metadata.

    StaticPool keeps the single in-memory connection alive across sessions.
    Foreign keys are switched on so ON DELETE CASCADE / SET NULL behave as in
    PostgreSQL.
    """
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(test_engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Accounts
# ══════════════════════════════════════════════════════════════════════════

@dataclass
class Account:
    id: str
    name: str
    token: str

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@dataclass
class Accounts:
    alice: Account
    bob: Account
    expired_token: str


@pytest_asyncio.fixture
async def accounts(session_factory) -> Accounts:
    """
    Two users with live sessions, plus an expired session for alice.

    Rows are written the way the auth provider would write them.
    """
    alice = Account(id="user-alice", name="Alice", token="alice-session-token")
    bob = Account(id="user-bob", name="Bob", token="bob-session-token")
    expires = datetime.now(timezone.utc) + timedelta(days=7)

    async with session_factory() as session:
        for account in (alice, bob):
            session.add(User(id=account.id, name=account.name, email=f"{account.id}@example.com"))
        # No relationship orders the inserts: users must exist before their sessions
        await session.flush()

        for account in (alice, bob):
            session.add(AuthSession(token=account.token, user_id=account.id, expires_at=expires))
        session.add(
            AuthSession(
                token="alice-expired-token",
                user_id=alice.id,
                expires_at=datetime.now(timezone.utc) - timedelta(hours=1),
            )
        )
        await session.commit()

    return Accounts(alice=alice, bob=bob, expired_token="alice-expired-token")


# ══════════════════════════════════════════════════════════════════════════
# Storage & images
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def storage() -> FakeObjectStorage:
    return FakeObjectStorage()


@pytest.fixture
def make_png():
    """
    Build real PNG bytes.

    Usage:
        content = make_png(4, 3)
    """

    def _make(width: int = 4, height: int = 3, color: str = "red") -> bytes:
        buffer = io.BytesIO()
        PILImage.new("RGB", (width, height), color).save(buffer, format="PNG")
        return buffer.getvalue()

    return _make


# ══════════════════════════════════════════════════════════════════════════
# HTTP client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def client(session_factory, storage):
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    The session dependency keeps the production commit/rollback behavior but
    uses the per-test database.
    """
    from folio.main import app

    async def _override_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _override_session
    app.dependency_overrides[get_storage] = lambda: storage
    app.state.storage = storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client

    app.dependency_overrides.clear()
    app.state.storage = None
