"""Submission models."""

from __future__ import annotations

from pydantic import BaseModel


class SubmissionRequest(BaseModel):
    """Validated fields for one submission, held only for the duration of a request."""

    discord_id: str
    question: str
    answer: str
    week_id: int | None = None
    source_ip: str | None = None


class SubmissionResult(BaseModel):
    """Outcome of routing a submission to the live or overflow table."""

    week_id: int
    alias: str
    overflow: bool
