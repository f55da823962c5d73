"""Week resolution: which collection period a submission belongs to.

Users count weeks from 1; the store counts from 0. Conversion happens once,
on the way in, via ``period_to_week_id``.
"""

from __future__ import annotations

import logging

from trivia.db.repository import Repository
from trivia.errors import ValidationError

logger = logging.getLogger(__name__)

# Used when no week is open at all.
FALLBACK_WEEK_ID = 0

# SQLite INTEGER is a signed 64-bit value.
MAX_WEEK_ID = 2**63 - 1


def period_to_week_id(period: int | None) -> int | None:
    """Convert a 1-based week number to the store's 0-based id."""
    if period is None:
        return None
    if period < 1:
        raise ValidationError("Week must be 1 or greater")
    return period - 1


def parse_week_id(raw: object) -> int | None:
    """Read a ``week_id`` from a request body: absent, an integer, or a numeric string."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool) or (isinstance(raw, float) and not raw.is_integer()):
        raise ValidationError("Invalid week")
    try:
        week_id = int(raw)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError("Invalid week") from None
    if not 0 <= week_id <= MAX_WEEK_ID:
        raise ValidationError("Invalid week")
    return week_id


async def resolve_week_id(
    repo: Repository,
    week_id: int | None,
    *,
    strict: bool = False,
) -> int:
    """Return the concrete week id a submission should be filed under.

    An explicit id is used as-is. With ``strict`` it must also exist.
    Otherwise the most recently created open week wins, falling back to
    ``FALLBACK_WEEK_ID`` when every week is closed.
    """
    if week_id is not None:
        if not 0 <= week_id <= MAX_WEEK_ID:
            raise ValidationError("Invalid week")
        if strict and await repo.get_week(week_id) is None:
            raise ValidationError(f"Week {week_id + 1} does not exist")
        return week_id

    week = await repo.get_latest_open_week()
    if week is None:
        logger.info("week_resolve_no_open_week fallback=%d", FALLBACK_WEEK_ID)
        return FALLBACK_WEEK_ID
    return week.id
