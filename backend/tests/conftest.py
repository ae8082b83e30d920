"""
InkPad — Test Configuration (conftest.py)
==========================================

Shared pytest fixtures for the whole suite.

Fixture Overview:
    Unit fixtures (no I/O):
    ├── dims:             small canvas dimensions
    ├── surface:          MemorySurface sized to `dims`
    ├── mock_db_session:  AsyncMock standing in for AsyncSession
    ├── query_result:     builder for the Result objects execute() returns
    └── make_note:        factory for Note ORM instances

    API fixtures (SQLite via aiosqlite, one database file per test):
    ├── session_factory:  async_sessionmaker bound to a fresh schema
    ├── app:              FastAPI app with get_db_session overridden
    ├── test_client:      httpx AsyncClient acting as user "alice"
    ├── other_client:     httpx AsyncClient acting as user "bob"
    └── anonymous_client: httpx AsyncClient without a user id header
"""

import os
import tempfile

# Settings are read at import time, so the environment goes first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="inkpad_test_"), "inkpad.db"
)
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"

from datetime import datetime, timezone  # noqa: E402
from typing import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from inkpad.canvas.stroke_buffer import CanvasDimensions  # noqa: E402
from inkpad.canvas.surface import MemorySurface  # noqa: E402
from inkpad.config import settings  # noqa: E402
from inkpad.database import Base, get_db_session  # noqa: E402
from inkpad.models.note import Note  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Unit fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def dims():
    return CanvasDimensions(width=100, height=100)


@pytest.fixture
def surface(dims):
    return MemorySurface(dimensions=dims)


@pytest.fixture
def mock_db_session():
    """
    Mock async database session.

    Usage:
        mock_db_session.execute.return_value = query_result(one=note)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def query_result():
    """Builds synchronous stand-ins for the Result returned by session.execute()."""

    def _result(one=None, many=None):
        result = MagicMock()
        result.scalar_one_or_none.return_value = one
        result.scalars.return_value.all.return_value = list(many or [])
        return result

    return _result


@pytest.fixture
def make_note():
    """Factory for detached Note rows with sensible defaults."""

    def _make(**overrides) -> Note:
        now = datetime.now(timezone.utc)
        fields = {
            "id": uuid4(),
            "user_id": "alice",
            "title": "Groceries",
            "content": "milk, eggs",
            "folder": None,
            "tags": [],
            "type": "text",
            "drawing_data": None,
            "created_at": now,
            "updated_at": now,
        }
        fields.update(overrides)
        return Note(**fields)

    return _make


# ══════════════════════════════════════════════════════════════════════════
# API fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'notes.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def app(session_factory):
    from inkpad.main import create_app

    application = create_app()

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_db_session
    yield application
    application.dependency_overrides.clear()


def _client_for(app, user_id=None) -> AsyncClient:
    headers = {settings.user_id_header: user_id} if user_id else {}
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test", headers=headers)


@pytest_asyncio.fixture
async def test_client(app):
    async with _client_for(app, "alice") as client:
        yield client


@pytest_asyncio.fixture
async def other_client(app):
    async with _client_for(app, "bob") as client:
        yield client


@pytest_asyncio.fixture
async def anonymous_client(app):
    async with _client_for(app) as client:
        yield client
