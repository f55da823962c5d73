"""Input rules shared by the bot (fail fast) and the backend (authoritative).

All checks run on trimmed strings and raise ``ValidationError`` before any
store access happens.
"""

from __future__ import annotations

import re

from trivia.errors import ValidationError

DISCORD_ID_RE = re.compile(r"\d{15,20}", re.ASCII)
ALIAS_RE = re.compile(r"[\w\s-]{1,25}", re.ASCII)
QUESTION_RE = re.compile(r".{5,150}")
ANSWER_RE = re.compile(r".{1,75}")

ALIAS_MAX_LENGTH = 25


def require_field(data: dict, name: str) -> str:
    """Return ``data[name]`` trimmed, or raise when it is absent or empty."""
    value = data.get(name)
    if value is None or value == "" or value is False:
        raise ValidationError(f"Missing field: {name}")
    text = str(value).strip()
    if not text:
        raise ValidationError(f"Missing field: {name}")
    return text


def validate_discord_id(discord_id: str) -> str:
    discord_id = discord_id.strip()
    if not DISCORD_ID_RE.fullmatch(discord_id):
        raise ValidationError("Invalid Discord ID format")
    return discord_id


def validate_alias(alias: str) -> str:
    alias = alias.strip()
    if not ALIAS_RE.fullmatch(alias):
        raise ValidationError(
            f"Invalid RSN format (1-{ALIAS_MAX_LENGTH} letters, digits, spaces, _ or -)"
        )
    return alias


def validate_question(question: str) -> str:
    question = question.strip()
    if not QUESTION_RE.fullmatch(question):
        raise ValidationError("Question must be 5-150 characters")
    return question


def validate_answer(answer: str) -> str:
    answer = answer.strip()
    if not ANSWER_RE.fullmatch(answer):
        raise ValidationError("Answer must be 1-75 characters")
    return answer
