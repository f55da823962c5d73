"""The closed set of slash commands and what each one declares.

Every command has a kind, an options type, a visibility, and whether it
claims its response with an immediate message instead of a defer.
"""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass


class CommandKind(enum.Enum):
    HELPTRIVIA = "helptrivia"
    VERSION = "version"
    PING = "ping"
    REGISTER = "register"
    SUBMIT = "submit"
    LEADERBOARD = "leaderboard"


class Visibility(enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"


@dataclass(frozen=True)
class NoOptions:
    pass


@dataclass(frozen=True)
class RegisterOptions:
    alias: str


@dataclass(frozen=True)
class SubmitOptions:
    question: str
    answer: str
    period: int | None = None


@dataclass(frozen=True)
class LeaderboardOptions:
    alias: str | None = None
    limit: int | None = None


CommandOptions = NoOptions | RegisterOptions | SubmitOptions | LeaderboardOptions


@dataclass(frozen=True)
class CommandSpec:
    kind: CommandKind
    description: str
    options_type: type
    visibility: Visibility = Visibility.PRIVATE
    immediate: bool = False

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    def ephemeral(self) -> bool:
        return self.visibility is Visibility.PRIVATE


COMMANDS: dict[CommandKind, CommandSpec] = {
    spec.kind: spec
    for spec in (
        CommandSpec(
            CommandKind.HELPTRIVIA,
            "Get help on the trivia submissions bot",
            NoOptions,
        ),
        CommandSpec(
            CommandKind.VERSION,
            "Check the current bot version",
            NoOptions,
            visibility=Visibility.PUBLIC,
        ),
        CommandSpec(
            CommandKind.PING,
            "Ping the bot to check latency",
            NoOptions,
            visibility=Visibility.PUBLIC,
            immediate=True,
        ),
        CommandSpec(
            CommandKind.REGISTER,
            "Link your Discord account to your RSN",
            RegisterOptions,
        ),
        CommandSpec(
            CommandKind.SUBMIT,
            "Submit a trivia question",
            SubmitOptions,
        ),
        CommandSpec(
            CommandKind.LEADERBOARD,
            "Show the trivia leaderboard",
            LeaderboardOptions,
            visibility=Visibility.PUBLIC,
        ),
    )
}


def options_for_log(options: CommandOptions) -> dict[str, object]:
    """Options as a plain dict for the audit log. Unset values are dropped."""
    return {k: v for k, v in dataclasses.asdict(options).items() if v is not None}
