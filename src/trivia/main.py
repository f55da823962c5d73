"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from trivia.api.trivia import router as trivia_router
from trivia.config import BOT_VERSION, Settings
from trivia.db.engine import create_engine, create_tables
from trivia.errors import TriviaError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: create engine/tables, optionally start the Discord bot."""
    settings: Settings = app.state.settings
    engine = create_engine(settings.database_url)
    await create_tables(engine)
    app.state.engine = engine

    discord_bot = None
    from trivia.discord.bot import is_discord_enabled

    if is_discord_enabled(settings):
        from trivia.discord.bot import start_discord_bot

        discord_bot = await start_discord_bot(settings)
        app.state.discord_bot = discord_bot
        logger.info("discord_bot_integration_started")
    else:
        logger.info("discord_bot_integration_disabled")

    yield

    if discord_bot is not None:
        await discord_bot.close()
        logger.info("discord_bot_integration_stopped")

    await engine.dispose()


async def _trivia_error_handler(request: Request, exc: TriviaError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("trivia_api_error path=%s err=%s", request.url.path, exc.message)
    else:
        logger.info(
            "trivia_api_rejected path=%s status=%d err=%s",
            request.url.path,
            exc.status_code,
            exc.message,
        )
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.info("trivia_api_invalid_request path=%s errors=%s", request.url.path, exc.errors())
    return JSONResponse({"error": "Invalid JSON"}, status_code=400)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the trivia FastAPI application."""
    settings = settings or Settings()

    logging.basicConfig(
        level=getattr(logging, settings.trivia_log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Trivia Relay",
        version=BOT_VERSION,
        description="Registration, question submission and leaderboard for the trivia bot",
        docs_url="/docs" if settings.trivia_env != "production" else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_exception_handler(TriviaError, _trivia_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)

    app.include_router(trivia_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "env": settings.trivia_env}

    return app


app = create_app()
