from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from school_inventory.api.deps import get_repository
from school_inventory.db import get_session
from school_inventory.main import app
from school_inventory.models import SQLModel
from school_inventory.services.repository import InMemoryInventoryStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine

    from school_inventory.services.repository import InventoryRepository

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Create a throwaway in-memory SQLite engine with all tables."""
    _engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a database session on the throwaway engine."""
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def store() -> InMemoryInventoryStore:
    """Fresh in-memory stock ledger and request store."""
    return InMemoryInventoryStore()


@pytest.fixture
async def async_client(store: InMemoryInventoryStore) -> AsyncIterator[AsyncClient]:
    """Async HTTP client whose repository dependency is backed by the in-memory store."""

    async def _override_get_repository() -> AsyncIterator[InventoryRepository]:
        yield store.repository()

    app.dependency_overrides[get_repository] = _override_get_repository
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
async def sql_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
