"""Error taxonomy shared by the bot and the backend.

Every error carries the HTTP status the backend answers with and a message
that is safe to show to the person who ran the command.
"""

from __future__ import annotations


class TriviaError(Exception):
    """Base class for all expected trivia failures."""

    status_code: int = 500

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(TriviaError):
    """Malformed or out-of-range input. Nothing was persisted."""

    status_code = 422


class AuthError(TriviaError):
    """Missing or incorrect shared secret."""

    status_code = 401


class PreconditionError(TriviaError):
    """A submission arrived from an identity that never registered."""

    status_code = 403


class TransientError(TriviaError):
    """Network failure or timeout talking to Discord or the backend."""

    status_code = 503


class FatalProtocolError(TriviaError):
    """The interaction token is unknown or was already acknowledged.

    Only ever logged. The response channel is gone, so nothing is sent.
    """

    status_code = 410


class StoreError(TriviaError):
    """An insert or upsert failed at the backend store. Not retried."""

    status_code = 500
