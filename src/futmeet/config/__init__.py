"""Configuration helpers for team limits and runtime settings."""

from .limits import (
    DEFAULT_LIMITS,
    TeamLimits,
    clamp_team_count,
    get_limits,
    iter_limits,
)
from .settings import cache_key, cache_path

__all__ = [
    "DEFAULT_LIMITS",
    "TeamLimits",
    "cache_key",
    "cache_path",
    "clamp_team_count",
    "get_limits",
    "iter_limits",
]
