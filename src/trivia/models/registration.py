"""Registration models. See GLOSSARY: Alias (RSN)."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class Registration(BaseModel):
    """One Discord identity mapped to the alias it registered most recently."""

    discord_id: str
    alias: str
    updated_at: datetime | None = None
