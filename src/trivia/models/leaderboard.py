"""Leaderboard projection. Read-only; scores are maintained outside the relay."""

from __future__ import annotations

from pydantic import BaseModel


class LeaderboardEntry(BaseModel):
    rsn: str
    score: int


class Leaderboard(BaseModel):
    count: int
    data: list[LeaderboardEntry]
