"""Tests for leaderboard queries."""

import pytest

from trivia.core.leaderboard import clamp_limit, parse_limit, query_leaderboard
from trivia.db.repository import Repository
from trivia.errors import ValidationError


class TestClampLimit:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(None, 10), (500, 100), (100, 100), (0, 1), (-5, 1), (25, 25)],
    )
    def test_clamp(self, raw: int | None, expected: int) -> None:
        assert clamp_limit(raw) == expected

    def test_parse_limit(self) -> None:
        assert parse_limit("500") == 100
        assert parse_limit(None, default=7) == 7
        with pytest.raises(ValidationError):
            parse_limit("lots")


class TestQueryLeaderboard:
    async def test_limit_500_clamped_to_100(self, repo: Repository):
        for i in range(120):
            await repo.set_score(f"player{i}", i)
        board = await query_leaderboard(repo, limit=500)
        assert board.count == 100
        assert board.data[0].rsn == "player119"
        assert board.data[0].score == 119

    async def test_alias_filter(self, repo: Repository):
        await repo.set_score("Zezima", 77)
        await repo.set_score("Durial321", 12)
        board = await query_leaderboard(repo, rsn="Zezima")
        assert board.count == 1
        assert board.data[0].rsn == "Zezima"

    async def test_invalid_alias_filter(self, repo: Repository):
        with pytest.raises(ValidationError, match="Invalid RSN format"):
            await query_leaderboard(repo, rsn="not@valid")
