"""Application settings via pydantic-settings. Loads from environment and .env file."""

from __future__ import annotations

import secrets

from pydantic import model_validator
from pydantic_settings import BaseSettings

BOT_VERSION = "0.3.7 Alpha"

DEFAULT_HELP_URL = "https://wecantread.club/trivia/"


class Settings(BaseSettings):
    """Trivia relay configuration.

    All values can be overridden via environment variables or .env file.
    """

    # Discord
    discord_bot_token: str = ""
    discord_guild_id: str = ""
    discord_enabled: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///trivia.db"

    # Environment
    trivia_env: str = "development"

    # Backend API (what the bot talks to)
    trivia_api_url: str = "http://localhost:8000/api/trivia"
    trivia_api_key: str = ""
    trivia_api_timeout: float = 10.0
    trivia_help_url: str = DEFAULT_HELP_URL

    # Weeks
    trivia_strict_weeks: bool = False  # Reject explicit week ids with no row

    # Interaction acknowledgment
    trivia_ack_max_attempts: int = 3
    trivia_ack_base_delay: float = 0.5
    trivia_ack_backoff: float = 2.0
    trivia_ack_window: float = 3.0  # Discord gives us 3 seconds to respond

    # Leaderboard
    trivia_leaderboard_default_limit: int = 10

    # Logging
    trivia_log_level: str = "INFO"

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _ensure_api_key(self) -> Settings:
        """Auto-generate the shared secret in dev; reject a missing one in production."""
        if not self.trivia_api_key:
            if self.trivia_env == "production":
                msg = (
                    "TRIVIA_API_KEY must be set in production. "
                    "Generate one with: python -c "
                    '"import secrets; print(secrets.token_urlsafe(32))"'
                )
                raise ValueError(msg)
            self.trivia_api_key = secrets.token_urlsafe(32)
        return self
