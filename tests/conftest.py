"""
Pytest configuration and fixtures for catalog tests.
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from typing import Any, AsyncIterator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from modelcatalog.core.exceptions import StorageException
from modelcatalog.db.base import Base
from modelcatalog.db.session import get_db
from modelcatalog.main import app
from modelcatalog.models import ModelRecord, User
from modelcatalog.storage import LocalStorageBackend, StorageBackend, get_storage


class RecordingStorage(StorageBackend):
    """
    In-memory object store that records every call.

    Keys in fail_keys raise StorageException on delete. Calls are appended
    to the shared events list so tests can assert ordering against the
    metadata store.
    """

    def __init__(self, keys=(), fail_keys=(), events: list | None = None):
        self.objects: dict[str, bytes] = {k: b"" for k in keys}
        self.fail_keys = set(fail_keys)
        self.deleted: list[str] = []
        self.events = events if events is not None else []

    async def upload_bytes(self, data: bytes, key: str, content_type: str) -> str:
        self.objects[key] = data
        return key

    async def download(self, key: str) -> AsyncIterator[bytes]:
        yield self.objects[key]

    async def delete(self, key: str) -> bool:
        self.deleted.append(key)
        self.events.append(("reclaim", key))
        if key in self.fail_keys:
            raise StorageException(message=f"delete failed: {key}", details={"key": key})
        return self.objects.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        return key in self.objects

    def get_url(self, key: str) -> str:
        return f"memory://{key}"


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """Create a test database engine backed by a temporary SQLite file."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def test_storage(tmp_path) -> LocalStorageBackend:
    """Create a test storage backend."""
    return LocalStorageBackend(base_path=str(tmp_path / "storage"))


@pytest_asyncio.fixture(scope="function")
async def client(db_session, test_storage) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db():
        yield db_session

    def override_get_storage():
        return test_storage

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = override_get_storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def events() -> list:
    """Shared call log for object store and metadata store fakes."""
    return []


@pytest.fixture
def recording_storage(events):
    """Factory for RecordingStorage instances sharing the events log."""

    def _make(keys=(), fail_keys=()) -> RecordingStorage:
        return RecordingStorage(keys=keys, fail_keys=fail_keys, events=events)

    return _make


@pytest.fixture
def author_claims() -> dict[str, Any]:
    """Identity of the author used across tests (matches the dev identity)."""
    return {
        "user_id": "dev-user-001",
        "name": "Development User",
        "email": "developer@example.org",
        "institution": None,
        "roles": ["author"],
        "scopes": ["models:read", "models:write"],
    }


@pytest.fixture
def other_claims() -> dict[str, Any]:
    """A second, unrelated identity."""
    return {
        "user_id": "other-user-002",
        "name": "Other User",
        "email": "other@example.org",
        "institution": None,
        "roles": ["author"],
        "scopes": ["models:read", "models:write"],
    }


@pytest.fixture
def sample_record_payload() -> dict[str, Any]:
    """Sample create payload in wire format."""
    return {
        "title": "Robot Arm",
        "description": "Six-axis arm, rigged",
        "isPublic": True,
        "imageId": "uploads/dev-user-001/img1.png",
        "videoId": "uploads/dev-user-001/v1.mp4",
        "modelFiles": [
            {"key": "uploads/dev-user-001/a.glb", "name": "arm.glb", "size": 1024},
            {"key": "uploads/dev-user-001/b.stl", "name": "base.stl"},
        ],
    }


@pytest.fixture
def make_user(db_session):
    """Insert a user row."""

    async def _make_user(user_id: str, username: str = "someone", email: str | None = None) -> User:
        user = User(id=user_id, username=username, email=email)
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


@pytest.fixture
def make_record(db_session):
    """Insert a model record row directly, bypassing the orchestrator."""

    async def _make_record(author_id: str, **fields: Any) -> ModelRecord:
        record = ModelRecord(
            title=fields.pop("title", "Sample"),
            description=fields.pop("description", ""),
            author_id=author_id,
            model_files=fields.pop("model_files", []),
            date_created=fields.pop("date_created", datetime.now(timezone.utc)),
            **fields,
        )
        db_session.add(record)
        await db_session.commit()
        return record

    return _make_record
