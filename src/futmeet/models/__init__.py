"""Canonical roster, team and session models."""

from .player import Player, Team, new_player
from .session import GameSession, GameStatus, WaitingRoom

__all__ = [
    "GameSession",
    "GameStatus",
    "Player",
    "Team",
    "WaitingRoom",
    "new_player",
]
