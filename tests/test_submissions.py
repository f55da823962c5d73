"""Tests for submission routing between the live and overflow tables."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from trivia.core.submissions import is_overflow, parse_submission, route_submission
from trivia.db.models import WeekRow
from trivia.db.repository import Repository
from trivia.errors import PreconditionError, StoreError, ValidationError
from trivia.models.submission import SubmissionRequest

DISCORD_ID = "123456789012345"
NOW = datetime(2026, 3, 10, 18, 0, tzinfo=UTC)


def _request(week_id: int | None = None) -> SubmissionRequest:
    return SubmissionRequest(
        discord_id=DISCORD_ID,
        question="Which god is worshipped at Entrana?",
        answer="Saradomin",
        week_id=week_id,
        source_ip="10.0.0.5",
    )


class TestIsOverflow:
    def test_open_without_deadline(self) -> None:
        assert is_overflow(WeekRow(id=0, is_closed=False, end_datetime=None), NOW) is False

    def test_closed(self) -> None:
        assert is_overflow(WeekRow(id=0, is_closed=True, end_datetime=None), NOW) is True

    def test_deadline_passed(self) -> None:
        week = WeekRow(id=0, is_closed=False, end_datetime=NOW - timedelta(seconds=1))
        assert is_overflow(week, NOW) is True

    def test_deadline_equal_is_not_past(self) -> None:
        assert is_overflow(WeekRow(id=0, is_closed=False, end_datetime=NOW), NOW) is False

    def test_naive_deadline_treated_as_utc(self) -> None:
        naive = (NOW + timedelta(hours=1)).replace(tzinfo=None)
        assert is_overflow(WeekRow(id=0, is_closed=False, end_datetime=naive), NOW) is False

    def test_unknown_week_is_live(self) -> None:
        assert is_overflow(None, NOW) is False


class TestParseSubmission:
    def test_valid_body(self) -> None:
        req = parse_submission(
            {
                "discord_id": DISCORD_ID,
                "question": "  What colour is a blue partyhat?  ",
                "answer": "Blue",
                "week_id": "1",
            },
            source_ip="1.2.3.4",
        )
        assert req.question == "What colour is a blue partyhat?"
        assert req.week_id == 1
        assert req.source_ip == "1.2.3.4"

    def test_missing_answer(self) -> None:
        with pytest.raises(ValidationError, match="Missing field: answer"):
            parse_submission({"discord_id": DISCORD_ID, "question": "Hello there"})

    def test_non_numeric_week(self) -> None:
        with pytest.raises(ValidationError, match="Invalid week"):
            parse_submission(
                {
                    "discord_id": DISCORD_ID,
                    "question": "Hello there",
                    "answer": "x",
                    "week_id": "two",
                }
            )

    @pytest.mark.parametrize("week_id", [1.7, 10**20, -1, True, "1e3"])
    def test_week_outside_integer_range_or_fractional(self, week_id: object) -> None:
        with pytest.raises(ValidationError, match="Invalid week"):
            parse_submission(
                {
                    "discord_id": DISCORD_ID,
                    "question": "Hello there",
                    "answer": "x",
                    "week_id": week_id,
                }
            )

    def test_integral_float_week_accepted(self) -> None:
        req = parse_submission(
            {"discord_id": DISCORD_ID, "question": "Hello there", "answer": "x", "week_id": 3.0}
        )
        assert req.week_id == 3

    def test_short_question(self) -> None:
        with pytest.raises(ValidationError, match="Question"):
            parse_submission({"discord_id": DISCORD_ID, "question": "Hey", "answer": "x"})


class TestRouteSubmission:
    async def test_requires_registration(self, repo: Repository):
        await repo.create_week(0, created_at=NOW)
        with pytest.raises(PreconditionError):
            await route_submission(repo, _request(), now=NOW)
        assert await repo.count_submissions() == 0
        assert await repo.count_submissions(overflow=True) == 0

    async def test_open_week_goes_live(self, repo: Repository):
        await repo.upsert_registration(DISCORD_ID, "Zezima")
        await repo.create_week(0, created_at=NOW - timedelta(days=7))
        await repo.create_week(1, created_at=NOW - timedelta(days=1))
        await repo.close_week(0)

        result = await route_submission(repo, _request(), now=NOW)
        assert result.week_id == 1
        assert result.overflow is False
        assert result.alias == "Zezima"
        rows = await repo.get_submissions(1)
        assert len(rows) == 1
        assert rows[0].rsn == "Zezima"
        assert rows[0].ip_address == "10.0.0.5"

    async def test_explicit_week_two_lands_in_week_id_one(self, repo: Repository):
        await repo.upsert_registration(DISCORD_ID, "Zezima")
        await repo.create_week(1, is_closed=False, end_datetime=None, created_at=NOW)

        result = await route_submission(repo, _request(week_id=1), now=NOW)
        assert result.week_id == 1
        assert result.overflow is False
        assert await repo.count_submissions() == 1

    async def test_closed_week_goes_to_overflow(self, repo: Repository):
        await repo.upsert_registration(DISCORD_ID, "Zezima")
        await repo.create_week(4, is_closed=True, created_at=NOW)

        result = await route_submission(repo, _request(week_id=4), now=NOW)
        assert result.overflow is True
        assert await repo.count_submissions() == 0
        overflow_rows = await repo.get_submissions(4, overflow=True)
        assert len(overflow_rows) == 1

    async def test_past_deadline_goes_to_overflow(self, repo: Repository):
        await repo.upsert_registration(DISCORD_ID, "Zezima")
        await repo.create_week(
            2, end_datetime=NOW - timedelta(minutes=5), created_at=NOW - timedelta(days=7)
        )

        result = await route_submission(repo, _request(), now=NOW)
        assert result.week_id == 2
        assert result.overflow is True

    async def test_unknown_explicit_week_goes_live(self, repo: Repository):
        await repo.upsert_registration(DISCORD_ID, "Zezima")
        result = await route_submission(repo, _request(week_id=9), now=NOW)
        assert result.week_id == 9
        assert result.overflow is False

    async def test_store_failure_becomes_store_error(self):
        repo = AsyncMock(spec=Repository)
        repo.get_alias.return_value = "Zezima"
        repo.get_week.return_value = None
        repo.insert_submission.side_effect = OperationalError("INSERT", {}, Exception("locked"))

        with pytest.raises(StoreError, match="DB insert failed"):
            await route_submission(repo, _request(week_id=0), now=NOW)
