"""FastAPI dependency injection for settings, sessions, repository and the shared secret."""

from __future__ import annotations

import hmac
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from trivia.config import Settings
from trivia.db.engine import create_session_factory
from trivia.db.repository import Repository
from trivia.errors import AuthError

API_KEY_HEADER = "X-API-KEY"
API_KEY_QUERY = "api_key"


async def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_engine(request: Request) -> AsyncEngine:
    """Get the database engine from app state."""
    return request.app.state.engine


async def get_session(
    engine: Annotated[AsyncEngine, Depends(get_engine)],
) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session."""
    factory = create_session_factory(engine)
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:  # Re-raise: roll back on any error
            await session.rollback()
            raise


async def get_repo(session: Annotated[AsyncSession, Depends(get_session)]) -> Repository:
    """Get a repository instance bound to the current session."""
    return Repository(session)


def check_api_key(request: Request, settings: Settings) -> None:
    """Raise AuthError unless the request carries the shared secret.

    Accepts the ``X-API-KEY`` header or the ``api_key`` query parameter.
    """
    provided = request.query_params.get(API_KEY_QUERY) or request.headers.get(API_KEY_HEADER, "")
    expected = settings.trivia_api_key
    if not provided or not hmac.compare_digest(expected.encode(), provided.encode()):
        raise AuthError("Unauthorized")


SettingsDep = Annotated[Settings, Depends(get_settings)]
RepoDep = Annotated[Repository, Depends(get_repo)]
