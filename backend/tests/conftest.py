"""
Fixtures for pytest.
"""

from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from portal_sync import models  # noqa: F401
from portal_sync.core.config import Settings
from portal_sync.db.base import Base
from portal_sync.services.sync_status import sync_status


@pytest.fixture
def settings() -> Settings:
    """Settings with a token and the stock tunables, independent of the environment."""
    return Settings(
        HUBSPOT_PRIVATE_APP_TOKEN="test-token",
        HUBSPOT_API_BASE_URL="https://hubspot.test",
        DATABASE_URL="sqlite+aiosqlite://",
        SYNC_DEFAULT_PAGE_SIZE=50,
        SYNC_MAX_PAGE_SIZE=100,
        SYNC_DEFAULT_PAGES=10,
        SYNC_MAX_PAGES=50,
        SYNC_DEFAULT_CONCURRENCY=5,
        SYNC_MAX_CONCURRENCY=20,
        _env_file=None,
    )


@pytest.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Session factory over a fresh SQLite file per test.

    A file (not :memory:) so every per-record session sees the same data.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'portal.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield factory

    await engine.dispose()


@pytest.fixture(autouse=True)
def reset_sync_status():
    """The status tracker is a process-wide singleton."""
    sync_status.reset()
    yield
    sync_status.reset()
