"""Mutable session containers owned by the session store."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from futmeet.config import DEFAULT_LIMITS

from .player import Player, Team


class GameStatus(str, Enum):
    SETUP = "setup"
    SORTING = "sorting"
    COMPLETE = "complete"


@dataclass
class GameSession:
    players: List[Player] = field(default_factory=list)
    team_count: int = DEFAULT_LIMITS.default_teams
    status: GameStatus = GameStatus.SETUP
    teams: List[Team] = field(default_factory=list)

    def snapshot(self) -> "GameSession":
        # Player and Team are frozen, so shallow list copies fully detach the view.
        return GameSession(
            players=list(self.players),
            team_count=self.team_count,
            status=self.status,
            teams=list(self.teams),
        )


@dataclass
class WaitingRoom:
    players: List[Player] = field(default_factory=list)

    def snapshot(self) -> "WaitingRoom":
        return WaitingRoom(players=list(self.players))
