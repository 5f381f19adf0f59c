"""Player and team models shared across the store, sorter and cache layers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Tuple
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Player(BaseModel):
    """A single roster entry. Identity is ``id``; names may repeat."""

    id: str = Field(..., min_length=1)
    name: str
    created_at: datetime = Field(default_factory=_utcnow)
    priority: bool = False

    model_config = ConfigDict(frozen=True)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return value.strip()

    @field_validator("created_at")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Team(BaseModel):
    """Sorted team; rebuilt from scratch on every sort."""

    id: str = Field(..., min_length=1)
    name: str
    players: Tuple[Player, ...] = ()

    model_config = ConfigDict(frozen=True)


def new_player(name: str) -> Player:
    return Player(id=uuid4().hex, name=name, created_at=_utcnow(), priority=False)
