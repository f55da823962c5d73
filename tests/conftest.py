"""Shared test fixtures."""

from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine

from trivia.config import Settings
from trivia.db.engine import create_engine, create_tables, get_session
from trivia.db.repository import Repository

API_KEY = "test-api-key"


@pytest.fixture
def settings() -> Settings:
    """Test settings with defaults."""
    return Settings(
        trivia_env="development",
        database_url="sqlite+aiosqlite:///:memory:",
        trivia_api_key=API_KEY,
        trivia_api_url="http://backend.test/api/trivia",
    )


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory SQLite engine with all tables."""
    eng = create_engine("sqlite+aiosqlite:///:memory:")
    await create_tables(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
async def repo(engine: AsyncEngine) -> AsyncGenerator[Repository, None]:
    """Yield a repository with a session bound to the in-memory database."""
    async with get_session(engine) as session:
        yield Repository(session)
