"""Tests for the generic retry combinator."""

from unittest.mock import AsyncMock

import pytest

from trivia.core.retry import FatalRetryError, RetryExhausted, RetryPolicy, retry_async


class Flaky(Exception):
    pass


class Doomed(Flaky):
    pass


def _policy(**overrides) -> RetryPolicy:
    defaults = {
        "max_attempts": 3,
        "base_delay": 0.5,
        "multiplier": 2.0,
        "retry_on": (Flaky,),
        "is_fatal": lambda exc: isinstance(exc, Doomed),
    }
    defaults.update(overrides)
    return RetryPolicy(**defaults)


class TestRetryPolicy:
    def test_exponential_delays(self) -> None:
        assert _policy().delays() == [0.5, 1.0]
        assert _policy(max_attempts=4, base_delay=0.25, multiplier=3.0).delays() == [
            0.25,
            0.75,
            2.25,
        ]

    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)


class TestRetryAsync:
    async def test_succeeds_after_transient_failures(self) -> None:
        op = AsyncMock(side_effect=[Flaky("1"), Flaky("2"), "ok"])
        sleep = AsyncMock()
        assert await retry_async(op, _policy(), sleep=sleep) == "ok"
        assert op.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [0.5, 1.0]

    async def test_fatal_stops_immediately(self) -> None:
        op = AsyncMock(side_effect=Doomed("gone"))
        sleep = AsyncMock()
        with pytest.raises(FatalRetryError) as exc_info:
            await retry_async(op, _policy(), sleep=sleep)
        assert exc_info.value.attempt == 1
        assert op.await_count == 1
        sleep.assert_not_awaited()

    async def test_exhausted(self) -> None:
        op = AsyncMock(side_effect=Flaky("again"))
        sleep = AsyncMock()
        with pytest.raises(RetryExhausted) as exc_info:
            await retry_async(op, _policy(), sleep=sleep)
        assert exc_info.value.attempts == 3
        assert op.await_count == 3
        assert sleep.await_count == 2

    async def test_unlisted_errors_propagate(self) -> None:
        op = AsyncMock(side_effect=KeyError("bug"))
        sleep = AsyncMock()
        with pytest.raises(KeyError):
            await retry_async(op, _policy(), sleep=sleep)
        assert op.await_count == 1
