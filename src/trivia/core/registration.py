"""Idempotent registration of a Discord identity against an alias."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from trivia.core.validation import require_field, validate_alias, validate_discord_id
from trivia.db.repository import Repository
from trivia.errors import StoreError
from trivia.models.registration import Registration

logger = logging.getLogger(__name__)


def parse_registration(data: dict) -> Registration:
    """Validate a raw request body before any store access."""
    for field in ("discord_id", "rsn"):
        require_field(data, field)
    return Registration(
        discord_id=validate_discord_id(str(data["discord_id"])),
        alias=validate_alias(str(data["rsn"])),
    )


async def register(repo: Repository, registration: Registration) -> Registration:
    """Insert or overwrite the alias for the identity. Safe to repeat."""
    try:
        await repo.upsert_registration(registration.discord_id, registration.alias)
        row = await repo.get_registration(registration.discord_id)
    except SQLAlchemyError as exc:
        logger.exception("registration_store_failed discord_id=%s", registration.discord_id)
        raise StoreError("DB upsert failed") from exc

    logger.info(
        "registration_upserted discord_id=%s rsn=%s",
        registration.discord_id,
        registration.alias,
    )
    if row is None:
        return registration
    return Registration(discord_id=row.discord_id, alias=row.rsn, updated_at=row.updated_at)
