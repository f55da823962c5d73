"""SQLAlchemy ORM models for the trivia store.

Tables: discord_rsn_map, trivia_weeks, trivia_submissions,
trivia_submissions_overflow, trivia_leaderboard.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _now() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class RegistrationRow(Base):
    __tablename__ = "discord_rsn_map"

    discord_id: Mapped[str] = mapped_column(String(20), primary_key=True)
    rsn: Mapped[str] = mapped_column(String(25), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_now, nullable=False)


class WeekRow(Base):
    __tablename__ = "trivia_weeks"

    # Explicit ids: week N as seen by users is stored as id N - 1.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    is_closed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    end_datetime: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now, nullable=False)


class _SubmissionColumns:
    """Columns shared by the live and overflow submission tables."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    week_id: Mapped[int] = mapped_column(Integer, nullable=False)
    rsn: Mapped[str] = mapped_column(String(25), nullable=False)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    date_time: Mapped[datetime] = mapped_column(DateTime, default=_now, nullable=False)


class SubmissionRow(_SubmissionColumns, Base):
    __tablename__ = "trivia_submissions"

    __table_args__ = (Index("ix_trivia_submissions_week_id", "week_id"),)


class OverflowSubmissionRow(_SubmissionColumns, Base):
    __tablename__ = "trivia_submissions_overflow"

    __table_args__ = (Index("ix_trivia_submissions_overflow_week_id", "week_id"),)


class LeaderboardRow(Base):
    __tablename__ = "trivia_leaderboard"

    user_id: Mapped[str] = mapped_column(String(25), primary_key=True)
    score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
