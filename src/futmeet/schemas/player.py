"""Input schemas for player names and team settings."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from futmeet.config import DEFAULT_LIMITS


class AddPlayerInput(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def name_is_displayable(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        if len(value) > DEFAULT_LIMITS.name_max_length:
            raise ValueError(
                f"Name must be at most {DEFAULT_LIMITS.name_max_length} characters"
            )
        if any(char in DEFAULT_LIMITS.forbidden_name_chars for char in value):
            raise ValueError("Name must not contain < or >")
        return value


class TeamSettingsInput(BaseModel):
    team_count: int = Field(
        ...,
        ge=DEFAULT_LIMITS.min_teams,
        le=DEFAULT_LIMITS.max_teams,
    )
