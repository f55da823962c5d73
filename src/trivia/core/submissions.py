"""Submission routing: validate, resolve the week, pick live vs overflow, insert.

A submission lands in the overflow table when its week is closed or its
deadline has already passed. The choice is made once at insert time; rows
are never moved afterwards.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError

from trivia.core.validation import (
    ALIAS_MAX_LENGTH,
    require_field,
    validate_answer,
    validate_discord_id,
    validate_question,
)
from trivia.core.weeks import parse_week_id, resolve_week_id
from trivia.db.models import WeekRow
from trivia.db.repository import Repository
from trivia.errors import PreconditionError, StoreError
from trivia.models.submission import SubmissionRequest, SubmissionResult

logger = logging.getLogger(__name__)


def parse_submission(data: dict, source_ip: str | None = None) -> SubmissionRequest:
    """Validate a raw request body. Raises ValidationError on the first bad field."""
    for field in ("discord_id", "question", "answer"):
        require_field(data, field)

    return SubmissionRequest(
        discord_id=validate_discord_id(str(data["discord_id"])),
        question=validate_question(str(data["question"])),
        answer=validate_answer(str(data["answer"])),
        week_id=parse_week_id(data.get("week_id")),
        source_ip=source_ip,
    )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def is_overflow(week: WeekRow | None, now: datetime) -> bool:
    """True when *week* is closed or its deadline is strictly before *now*.

    An unknown week (no row) is treated as open.
    """
    if week is None:
        return False
    if week.is_closed:
        return True
    return week.end_datetime is not None and _as_utc(week.end_datetime) < _as_utc(now)


async def route_submission(
    repo: Repository,
    request: SubmissionRequest,
    *,
    strict_weeks: bool = False,
    now: datetime | None = None,
) -> SubmissionResult:
    """Store *request* in the live or overflow table.

    Raises PreconditionError if the caller has no registered alias; nothing
    is inserted in that case.
    """
    now = now or datetime.now(UTC)
    try:
        alias = await repo.get_alias(request.discord_id)
        if alias is None:
            raise PreconditionError("RSN not registered. Please run `/register` first.")
        alias = alias.strip()[:ALIAS_MAX_LENGTH]

        week_id = await resolve_week_id(repo, request.week_id, strict=strict_weeks)
        week = await repo.get_week(week_id)
        overflow = is_overflow(week, now)

        await repo.insert_submission(
            overflow=overflow,
            week_id=week_id,
            rsn=alias,
            question=request.question,
            answer=request.answer,
            ip_address=request.source_ip,
            date_time=now,
        )
    except SQLAlchemyError as exc:
        logger.exception("submission_store_failed discord_id=%s", request.discord_id)
        raise StoreError("DB insert failed") from exc

    logger.info(
        "submission_stored rsn=%s week_id=%d overflow=%s",
        alias,
        week_id,
        overflow,
    )
    return SubmissionResult(week_id=week_id, alias=alias, overflow=overflow)
