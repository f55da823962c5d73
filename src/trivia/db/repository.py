"""Repository pattern for database access.

Wraps SQLAlchemy async sessions. Registrations are upserted, submissions
are insert-only and never move between the live and overflow tables.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import func, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from trivia.db.models import (
    LeaderboardRow,
    OverflowSubmissionRow,
    RegistrationRow,
    SubmissionRow,
    WeekRow,
)


class Repository:
    """Async repository for all database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # --- Registration ---

    async def upsert_registration(self, discord_id: str, rsn: str) -> None:
        """Insert or overwrite the alias for *discord_id*.

        Atomicity comes from the primary key: concurrent registrations for the
        same identity collapse into one row holding the last writer's alias.
        """
        now = datetime.now(UTC)
        stmt = sqlite_insert(RegistrationRow).values(
            discord_id=discord_id, rsn=rsn, updated_at=now
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[RegistrationRow.discord_id],
            set_={"rsn": stmt.excluded.rsn, "updated_at": stmt.excluded.updated_at},
        )
        await self.session.execute(stmt)

    async def get_registration(self, discord_id: str) -> RegistrationRow | None:
        # The upsert bypasses the identity map, so always reload.
        return await self.session.get(RegistrationRow, discord_id, populate_existing=True)

    async def get_alias(self, discord_id: str) -> str | None:
        """Return the registered alias for *discord_id*, or None."""
        result = await self.session.execute(
            select(RegistrationRow.rsn).where(RegistrationRow.discord_id == discord_id)
        )
        return result.scalar_one_or_none()

    async def count_registrations(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(RegistrationRow))
        return result.scalar_one()

    # --- Weeks ---

    async def create_week(
        self,
        week_id: int,
        *,
        is_closed: bool = False,
        end_datetime: datetime | None = None,
        created_at: datetime | None = None,
    ) -> WeekRow:
        row = WeekRow(id=week_id, is_closed=is_closed, end_datetime=end_datetime)
        if created_at is not None:
            row.created_at = created_at
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_week(self, week_id: int) -> WeekRow | None:
        return await self.session.get(WeekRow, week_id)

    async def close_week(self, week_id: int) -> None:
        await self.session.execute(
            update(WeekRow).where(WeekRow.id == week_id).values(is_closed=True)
        )

    async def get_latest_open_week(self) -> WeekRow | None:
        """Return the most recently created week that is not closed."""
        stmt = (
            select(WeekRow)
            .where(WeekRow.is_closed.is_(False))
            .order_by(WeekRow.created_at.desc(), WeekRow.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    # --- Submissions ---

    async def insert_submission(
        self,
        *,
        overflow: bool,
        week_id: int,
        rsn: str,
        question: str,
        answer: str,
        ip_address: str | None,
        date_time: datetime,
    ) -> SubmissionRow | OverflowSubmissionRow:
        row_cls = OverflowSubmissionRow if overflow else SubmissionRow
        row = row_cls(
            week_id=week_id,
            rsn=rsn,
            question=question,
            answer=answer,
            ip_address=ip_address,
            date_time=date_time,
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_submissions(
        self, week_id: int, *, overflow: bool = False
    ) -> list[SubmissionRow] | list[OverflowSubmissionRow]:
        row_cls = OverflowSubmissionRow if overflow else SubmissionRow
        stmt = select(row_cls).where(row_cls.week_id == week_id).order_by(row_cls.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_submissions(self, *, overflow: bool = False) -> int:
        row_cls = OverflowSubmissionRow if overflow else SubmissionRow
        result = await self.session.execute(select(func.count()).select_from(row_cls))
        return result.scalar_one()

    # --- Leaderboard ---

    async def set_score(self, rsn: str, score: int) -> None:
        stmt = sqlite_insert(LeaderboardRow).values(user_id=rsn, score=score)
        stmt = stmt.on_conflict_do_update(
            index_elements=[LeaderboardRow.user_id],
            set_={"score": stmt.excluded.score},
        )
        await self.session.execute(stmt)

    async def get_leaderboard(self, limit: int) -> list[LeaderboardRow]:
        """Top *limit* entries by score, highest first."""
        stmt = (
            select(LeaderboardRow)
            .order_by(LeaderboardRow.score.desc(), LeaderboardRow.user_id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_leaderboard_entry(self, rsn: str) -> list[LeaderboardRow]:
        stmt = select(LeaderboardRow).where(LeaderboardRow.user_id == rsn)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
