"""Discord bot for the trivia relay.

Runs alongside FastAPI using the same event loop. Every slash command goes
through ``TriviaBot.run_command``: audit log, claim the response slot, run
the handler, then deliver the handler's text through the claimed slot.

The bot is optional: if DISCORD_BOT_TOKEN is not set, nothing starts.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import discord
from discord import Intents, app_commands
from discord.ext import commands

from trivia.config import BOT_VERSION
from trivia.core.validation import validate_alias, validate_answer, validate_question
from trivia.discord.ack import AckOutcome, AcknowledgmentManager, ack_policy
from trivia.discord.api_client import TriviaApiClient
from trivia.discord.commands import (
    COMMANDS,
    CommandKind,
    CommandOptions,
    CommandSpec,
    LeaderboardOptions,
    NoOptions,
    RegisterOptions,
    SubmitOptions,
    options_for_log,
)
from trivia.errors import PreconditionError, TransientError, ValidationError

if TYPE_CHECKING:
    from trivia.config import Settings

logger = logging.getLogger(__name__)

GENERIC_ERROR = "An unexpected error occurred."
UNKNOWN_COMMAND = "Unknown command."
UNREACHABLE = "The trivia server could not be reached. Try again in a moment."

# Discord rejects message content longer than this.
MESSAGE_LIMIT = 2000

Handler = Callable[[discord.Interaction, Any], Awaitable[str]]


def split_message(content: str, limit: int = MESSAGE_LIMIT) -> list[str]:
    """Split *content* on line boundaries into chunks no longer than *limit*."""
    if len(content) <= limit:
        return [content]
    chunks: list[str] = []
    current = ""
    for line in content.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks


def build_api_client(settings: Settings) -> TriviaApiClient:
    return TriviaApiClient(
        settings.trivia_api_url,
        settings.trivia_api_key,
        timeout=settings.trivia_api_timeout,
    )


def build_ack_manager(settings: Settings) -> AcknowledgmentManager:
    return AcknowledgmentManager(
        ack_policy(
            max_attempts=settings.trivia_ack_max_attempts,
            base_delay=settings.trivia_ack_base_delay,
            multiplier=settings.trivia_ack_backoff,
        ),
        validity_window=settings.trivia_ack_window,
    )


class TriviaBot(commands.Bot):
    """The trivia submissions Discord bot.

    Holds no per-interaction state. The API client and acknowledgment
    manager are shared service objects created once at startup.
    """

    def __init__(
        self,
        settings: Settings,
        api_client: TriviaApiClient | None = None,
        ack_manager: AcknowledgmentManager | None = None,
    ) -> None:
        super().__init__(
            command_prefix="!",
            intents=Intents.default(),
            description="Trivia submissions -- register your RSN and submit questions.",
        )
        self.settings = settings
        self.api = api_client or build_api_client(settings)
        self.ack = ack_manager or build_ack_manager(settings)
        self.command_handlers: dict[CommandKind, Handler] = {
            CommandKind.HELPTRIVIA: self._handle_helptrivia,
            CommandKind.VERSION: self._handle_version,
            CommandKind.PING: self._handle_ping,
            CommandKind.REGISTER: self._handle_register,
            CommandKind.SUBMIT: self._handle_submit,
            CommandKind.LEADERBOARD: self._handle_leaderboard,
        }
        self._setup_commands()

    def _setup_commands(self) -> None:
        """Register slash commands on the bot's command tree."""

        @self.tree.command(
            name="helptrivia",
            description=COMMANDS[CommandKind.HELPTRIVIA].description,
        )
        async def helptrivia_command(interaction: discord.Interaction) -> None:
            await self.run_command(interaction, CommandKind.HELPTRIVIA, NoOptions())

        @self.tree.command(name="version", description=COMMANDS[CommandKind.VERSION].description)
        async def version_command(interaction: discord.Interaction) -> None:
            await self.run_command(interaction, CommandKind.VERSION, NoOptions())

        @self.tree.command(name="ping", description=COMMANDS[CommandKind.PING].description)
        async def ping_command(interaction: discord.Interaction) -> None:
            await self.run_command(interaction, CommandKind.PING, NoOptions())

        @self.tree.command(
            name="register",
            description=COMMANDS[CommandKind.REGISTER].description,
        )
        @app_commands.describe(alias="Your RuneScape name")
        async def register_command(interaction: discord.Interaction, alias: str) -> None:
            await self.run_command(interaction, CommandKind.REGISTER, RegisterOptions(alias=alias))

        @self.tree.command(name="submit", description=COMMANDS[CommandKind.SUBMIT].description)
        @app_commands.describe(
            question="Your trivia question",
            answer="Your CORRECT answer",
            period="Trivia week number (starts at 1, optional)",
        )
        async def submit_command(
            interaction: discord.Interaction,
            question: str,
            answer: str,
            period: int | None = None,
        ) -> None:
            await self.run_command(
                interaction,
                CommandKind.SUBMIT,
                SubmitOptions(question=question, answer=answer, period=period),
            )

        @self.tree.command(
            name="leaderboard",
            description=COMMANDS[CommandKind.LEADERBOARD].description,
        )
        @app_commands.describe(
            alias="Show a single RSN (optional)",
            limit="How many entries to show, 1-100 (optional)",
        )
        async def leaderboard_command(
            interaction: discord.Interaction,
            alias: str | None = None,
            limit: int | None = None,
        ) -> None:
            await self.run_command(
                interaction,
                CommandKind.LEADERBOARD,
                LeaderboardOptions(alias=alias, limit=limit),
            )

        @self.tree.error
        async def on_tree_error(
            interaction: discord.Interaction,
            error: app_commands.AppCommandError,
        ) -> None:
            if isinstance(error, app_commands.CommandNotFound):
                await self.run_unknown(interaction, error.name)
                return
            logger.error("discord_tree_error err=%s", error, exc_info=error)

    async def setup_hook(self) -> None:
        """Called when the bot is ready to start. Syncs slash commands."""
        if self.settings.discord_guild_id:
            guild = discord.Object(id=int(self.settings.discord_guild_id))
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
            logger.info("discord_commands_synced guild_id=%s", self.settings.discord_guild_id)
        else:
            await self.tree.sync()
            logger.info("discord_commands_synced globally")

    async def on_ready(self) -> None:
        user = self.user
        name = user.name if user else "unknown"
        logger.info("discord_bot_ready user=%s version=%s", name, BOT_VERSION)

    # --- Dispatch ---

    def _log_received(
        self,
        interaction: discord.Interaction,
        command: str,
        options: dict[str, object],
    ) -> None:
        logger.info(
            "command_received user=%s command=%s options=%s age_seconds=%.3f",
            interaction.user.id if interaction.user else "unknown",
            command,
            options,
            self.ack.interaction_age(interaction),
        )

    async def run_command(
        self,
        interaction: discord.Interaction,
        kind: CommandKind,
        options: CommandOptions,
    ) -> None:
        """Claim the response slot, run the handler, deliver its reply."""
        spec = COMMANDS[kind]
        if not isinstance(options, spec.options_type):
            raise TypeError(f"/{spec.name} expects {spec.options_type.__name__}")

        self._log_received(interaction, spec.name, options_for_log(options))

        outcome = await self.ack.claim(
            interaction,
            ephemeral=spec.ephemeral,
            content="Pinging..." if spec.immediate else None,
        )
        if outcome is not AckOutcome.CLAIMED:
            return

        try:
            content = await self.command_handlers[kind](interaction, options)
        except (ValidationError, PreconditionError) as exc:
            content = exc.message
        except TransientError:
            content = UNREACHABLE
        except Exception:  # Last-resort handler: the claimed slot must still get a reply
            logger.exception("command_error command=%s", spec.name)
            content = GENERIC_ERROR

        await self._deliver(interaction, spec, content)

    async def run_unknown(self, interaction: discord.Interaction, name: str) -> None:
        """Answer a command this bot does not know, privately."""
        self._log_received(interaction, name, {})
        outcome = await self.ack.claim(interaction, ephemeral=True)
        if outcome is AckOutcome.CLAIMED:
            await self._deliver(interaction, None, UNKNOWN_COMMAND)

    async def _deliver(
        self,
        interaction: discord.Interaction,
        spec: CommandSpec | None,
        content: str,
    ) -> None:
        """Edit the claimed response, appending follow-ups for overflow text."""
        first, *rest = split_message(content)
        ephemeral = spec.ephemeral if spec else True
        try:
            await interaction.edit_original_response(content=first)
            for chunk in rest:
                await interaction.followup.send(chunk, ephemeral=ephemeral)
        except discord.HTTPException:
            logger.exception(
                "command_reply_failed command=%s interaction_id=%s",
                spec.name if spec else "unknown",
                interaction.id,
            )

    # --- Slash command handlers ---

    async def _handle_helptrivia(self, interaction: discord.Interaction, options: NoOptions) -> str:
        return "\n".join(
            [
                "**Trivia Bot Help**",
                f"Submit questions here: {self.settings.trivia_help_url}",
                'If you receive "command not found", try again after a few seconds.',
                "",
                "• First register: `/register alias:<Your RSN>`",
                "• Then submit: `/submit question:<Your Question> answer:<Correct Answer>"
                " [period:<Week Number>]`",
                "• Check scores: `/leaderboard [alias:<RSN>] [limit:<1-100>]`",
            ]
        )

    async def _handle_version(self, interaction: discord.Interaction, options: NoOptions) -> str:
        return f"Trivia Bot version: {BOT_VERSION}"

    async def _handle_ping(self, interaction: discord.Interaction, options: NoOptions) -> str:
        reply = await interaction.original_response()
        round_trip_ms = (reply.created_at - interaction.created_at).total_seconds() * 1000
        lines = [f"Pong! Round-trip latency: {round_trip_ms:.0f}ms"]
        if math.isfinite(self.latency):
            lines.append(f"Discord API latency: {self.latency * 1000:.0f}ms")
        return "\n".join(lines)

    async def _handle_register(
        self, interaction: discord.Interaction, options: RegisterOptions
    ) -> str:
        try:
            alias = validate_alias(options.alias)
        except ValidationError as exc:
            return f"Registration failed: {exc.message}"

        result = await self.api.register(str(interaction.user.id), alias)
        if result.ok:
            return f"Registered as {alias}"
        return f"Registration failed: {result.error}"

    async def _handle_submit(self, interaction: discord.Interaction, options: SubmitOptions) -> str:
        try:
            question = validate_question(options.question)
            answer = validate_answer(options.answer)
            result = await self.api.submit(
                str(interaction.user.id), question, answer, period=options.period
            )
        except ValidationError as exc:
            return f"Submission failed: {exc.message}"

        if not result.ok:
            return f"Submission failed: {result.error}"
        if result.overflow:
            return (
                "Question submitted. That week is already closed, "
                "so it was filed with the late submissions."
            )
        return "Question submitted successfully."

    async def _handle_leaderboard(
        self, interaction: discord.Interaction, options: LeaderboardOptions
    ) -> str:
        alias = validate_alias(options.alias) if options.alias else None
        result = await self.api.leaderboard(rsn=alias, limit=options.limit)
        if not result.ok:
            return f"Leaderboard unavailable: {result.error}"

        entries = result.data.get("data", [])
        if not entries:
            return f"No leaderboard entry for {alias}." if alias else "The leaderboard is empty."
        lines = ["**Trivia Leaderboard**"]
        for rank, entry in enumerate(entries, start=1):
            lines.append(f"{rank}. {entry.get('rsn')}: {entry.get('score')}")
        return "\n".join(lines)

    async def close(self) -> None:
        """Clean shutdown: close the backend client, then the bot."""
        await self.api.close()
        await super().close()


def is_discord_enabled(settings: Settings) -> bool:
    """Check whether Discord integration should be started."""
    return bool(settings.discord_enabled and settings.discord_bot_token)


async def start_discord_bot(settings: Settings) -> TriviaBot:
    """Create and start the Discord bot in the current event loop.

    Returns the bot instance so the caller can stop it during shutdown.
    The bot runs as a background task; this function returns immediately
    after starting it.
    """
    bot = TriviaBot(
        settings=settings,
        api_client=build_api_client(settings),
        ack_manager=build_ack_manager(settings),
    )

    async def _run_bot() -> None:
        try:
            await bot.start(settings.discord_bot_token)
        except asyncio.CancelledError:
            logger.info("discord_bot_cancelled")
        except Exception:  # Last-resort handler: bot.start raises connection and auth errors
            logger.exception("discord_bot_error")
        finally:
            if not bot.is_closed():
                await bot.close()

    asyncio.create_task(_run_bot(), name="discord-bot")
    logger.info("discord_bot_started")
    return bot
