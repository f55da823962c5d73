"""Interaction acknowledgment: claim the response slot once, quickly.

Discord invalidates an interaction token if nothing is sent within about
three seconds. Every command therefore claims its response slot (a defer,
or an immediate message for ``/ping``) before any business logic runs, and
all later output goes through edits and follow-ups on that claimed slot.

The manager returns an ``AckOutcome``. Only ``CLAIMED`` lets the caller
continue; on ``EXPIRED`` or ``FAILED`` the slot is unusable and the caller
must not touch the interaction again.

An interaction's age is the local clock minus the creation time encoded in
its snowflake id, so the host clock is assumed to be NTP-synced. A host
running more than the validity window fast marks every interaction
``EXPIRED``; the ``ack_claim_expired`` warning carries the computed age to
make that visible.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

import aiohttp
import discord

from trivia.core.retry import FatalRetryError, RetryExhausted, RetryPolicy, retry_async
from trivia.errors import FatalProtocolError

logger = logging.getLogger(__name__)

# Discord JSON error codes that mean the token is gone for good.
UNKNOWN_INTERACTION = 10062
ALREADY_ACKNOWLEDGED = 40060
FATAL_ERROR_CODES = frozenset({UNKNOWN_INTERACTION, ALREADY_ACKNOWLEDGED})

DEFAULT_VALIDITY_WINDOW = 3.0

RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    discord.InteractionResponded,
    discord.HTTPException,
    aiohttp.ClientError,
    asyncio.TimeoutError,
    OSError,
)


class AckOutcome(enum.Enum):
    CLAIMED = "claimed"
    EXPIRED = "expired"
    FAILED = "failed"


class _WindowElapsed(Exception):
    """Raised inside an attempt when the validity window is already over."""


def is_fatal_ack_error(exc: BaseException) -> bool:
    """True for errors where another claim attempt cannot succeed."""
    if isinstance(exc, (discord.InteractionResponded, discord.NotFound)):
        return True
    return isinstance(exc, discord.HTTPException) and exc.code in FATAL_ERROR_CODES


def _is_fatal(exc: BaseException) -> bool:
    return isinstance(exc, FatalProtocolError) or is_fatal_ack_error(exc)


def ack_policy(
    max_attempts: int = 3,
    base_delay: float = 0.5,
    multiplier: float = 2.0,
) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=max_attempts,
        base_delay=base_delay,
        multiplier=multiplier,
        retry_on=(FatalProtocolError, *RETRYABLE_ERRORS),
        is_fatal=_is_fatal,
    )


class AcknowledgmentManager:
    """Claims the response slot of an interaction, retrying transient failures.

    One instance is shared by every command; it holds no per-interaction
    state, so concurrent interactions never see each other.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        validity_window: float = DEFAULT_VALIDITY_WINDOW,
        clock: Callable[[], datetime] | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self.policy = policy or ack_policy()
        self.validity_window = validity_window
        self._clock = clock or (lambda: datetime.now(UTC))
        self._sleep = sleep

    def interaction_age(self, interaction: discord.Interaction) -> float:
        """Seconds since Discord created the interaction."""
        return (self._clock() - interaction.created_at).total_seconds()

    async def claim(
        self,
        interaction: discord.Interaction,
        *,
        ephemeral: bool,
        content: str | None = None,
    ) -> AckOutcome:
        """Claim the slot by deferring, or by replying with *content* if given."""
        command = interaction.command.name if interaction.command else "unknown"

        if interaction.response.is_done():
            logger.error(
                "ack_claim_fatal command=%s interaction_id=%s err=already responded",
                command,
                interaction.id,
            )
            return AckOutcome.FAILED

        async def _attempt() -> None:
            age = self.interaction_age(interaction)
            if age >= self.validity_window:
                raise _WindowElapsed(f"interaction is {age:.3f}s old")
            try:
                if content is None:
                    await interaction.response.defer(ephemeral=ephemeral, thinking=True)
                else:
                    await interaction.response.send_message(content, ephemeral=ephemeral)
            except RETRYABLE_ERRORS as exc:
                if is_fatal_ack_error(exc):
                    raise FatalProtocolError(f"{type(exc).__name__}: {exc}") from exc
                raise

        try:
            await retry_async(_attempt, self.policy, sleep=self._sleep, label="ack_claim")
        except _WindowElapsed as exc:
            logger.warning(
                "ack_claim_expired command=%s interaction_id=%s %s",
                command,
                interaction.id,
                exc,
            )
            return AckOutcome.EXPIRED
        except FatalRetryError as exc:
            logger.error(
                "ack_claim_fatal command=%s interaction_id=%s attempt=%d err=%s",
                command,
                interaction.id,
                exc.attempt,
                exc.error,
            )
            return AckOutcome.FAILED
        except RetryExhausted as exc:
            logger.error(
                "ack_claim_failed command=%s interaction_id=%s attempts=%d err=%r",
                command,
                interaction.id,
                exc.attempts,
                exc.last_error,
            )
            return AckOutcome.FAILED

        return AckOutcome.CLAIMED
