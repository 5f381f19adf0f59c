"""Team and roster limits for supported game formats."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable


@dataclass(frozen=True)
class TeamLimits:
    key: str
    min_teams: int
    max_teams: int
    default_teams: int
    name_max_length: int
    forbidden_name_chars: FrozenSet[str]


_LIMITS: Dict[str, TeamLimits] = {
    "PICKUP": TeamLimits(
        key="PICKUP",
        min_teams=2,
        max_teams=10,
        default_teams=2,
        name_max_length=50,
        forbidden_name_chars=frozenset("<>"),
    ),
}

DEFAULT_LIMITS = _LIMITS["PICKUP"]


def iter_limits() -> Iterable[TeamLimits]:
    """Return an iterator of all configured limit sets."""

    return _LIMITS.values()


def get_limits(key: str) -> TeamLimits:
    """Fetch limits by key, raising KeyError if missing."""

    normalized = key.upper()
    if normalized not in _LIMITS:
        raise KeyError(f"No team limits configured for key={key!r}")
    return _LIMITS[normalized]


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def clamp_team_count(count: float, limits: TeamLimits = DEFAULT_LIMITS) -> int:
    """Round ``count`` half up and clamp it into the configured team range.

    NaN maps to the minimum; infinities and values too large for a float map
    to the nearest bound, so callers always receive a usable integer.
    """

    if isinstance(count, int):
        return max(limits.min_teams, min(limits.max_teams, count))
    try:
        value = float(count)
    except OverflowError:
        return limits.max_teams if count > 0 else limits.min_teams
    if math.isnan(value):
        return limits.min_teams
    if math.isinf(value):
        return limits.max_teams if value > 0 else limits.min_teams
    return max(limits.min_teams, min(limits.max_teams, _round_half_up(value)))
