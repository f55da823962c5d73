"""Read-only leaderboard queries."""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from trivia.core.validation import validate_alias
from trivia.db.repository import Repository
from trivia.errors import StoreError, ValidationError
from trivia.models.leaderboard import Leaderboard, LeaderboardEntry

MIN_LIMIT = 1
MAX_LIMIT = 100
DEFAULT_LIMIT = 10


def clamp_limit(limit: int | None, default: int = DEFAULT_LIMIT) -> int:
    """Clamp a caller-supplied limit into [MIN_LIMIT, MAX_LIMIT]."""
    if limit is None:
        limit = default
    return max(MIN_LIMIT, min(MAX_LIMIT, limit))


def parse_limit(raw: str | None, default: int = DEFAULT_LIMIT) -> int:
    if raw is None or raw == "":
        return clamp_limit(None, default)
    try:
        return clamp_limit(int(raw), default)
    except ValueError:
        raise ValidationError("Invalid limit") from None


async def query_leaderboard(
    repo: Repository,
    *,
    rsn: str | None = None,
    limit: int | None = None,
    default_limit: int = DEFAULT_LIMIT,
) -> Leaderboard:
    """Return one alias's entry when *rsn* is given, else the top N by score."""
    if rsn:
        try:
            rsn = validate_alias(rsn)
        except ValidationError:
            raise ValidationError("Invalid RSN format") from None

    try:
        if rsn:
            rows = await repo.get_leaderboard_entry(rsn)
        else:
            rows = await repo.get_leaderboard(clamp_limit(limit, default_limit))
    except SQLAlchemyError as exc:
        raise StoreError("DB query failed") from exc

    data = [LeaderboardEntry(rsn=row.user_id, score=row.score) for row in rows]
    return Leaderboard(count=len(data), data=data)
