"""Versioned snapshot serialization for the session cache.

Version history:

* ``0`` - browser-era shape written by the original web client: camelCase keys
  wrapped in ``{"state": ..., "version": 0}``, players carrying ``timestamp``
  instead of ``created_at`` and waiting rooms stored as bare player lists.
* ``1`` - current shape: ``{"version": 1, "games": {...}, "rooms": {...}}``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping

from pydantic import ValidationError

from futmeet.config import DEFAULT_LIMITS, clamp_team_count
from futmeet.models import GameSession, GameStatus, Player, Team, WaitingRoom


logger = logging.getLogger(__name__)

CACHE_VERSION = 1

_INVALID_SESSION_ERRORS = (ValidationError, ValueError, TypeError, KeyError, AttributeError)


class SnapshotVersionError(ValueError):
    """Raised when a payload was written by a newer, unknown cache version."""


@dataclass
class CacheSnapshot:
    games: Dict[str, GameSession] = field(default_factory=dict)
    rooms: Dict[str, WaitingRoom] = field(default_factory=dict)


def _dump_players(players: List[Player]) -> List[dict]:
    return [player.model_dump(mode="json") for player in players]


def dump_snapshot(
    games: Mapping[str, GameSession],
    rooms: Mapping[str, WaitingRoom],
) -> dict:
    return {
        "version": CACHE_VERSION,
        "games": {
            sid: {
                "players": _dump_players(game.players),
                "team_count": game.team_count,
                "status": game.status.value,
                "teams": [team.model_dump(mode="json") for team in game.teams],
            }
            for sid, game in games.items()
        },
        "rooms": {
            sid: {"players": _dump_players(room.players)}
            for sid, room in rooms.items()
        },
    }


def _legacy_player(raw: Mapping[str, Any]) -> dict:
    player = dict(raw)
    if "created_at" not in player and "timestamp" in player:
        player["created_at"] = player.pop("timestamp")
    player.pop("notes", None)
    return player


def _legacy_team(raw: Mapping[str, Any]) -> dict:
    return {
        "id": raw.get("id"),
        "name": raw.get("name"),
        "players": [_legacy_player(p) for p in raw.get("players") or []],
    }


def _migrate_v0(payload: Mapping[str, Any]) -> dict:
    state = payload.get("state") or {}
    games: dict = {}
    for sid, raw in (state.get("games") or {}).items():
        games[sid] = {
            "players": [_legacy_player(p) for p in raw.get("players") or []],
            "team_count": raw.get("teamCount", raw.get("team_count")),
            "status": raw.get("gameStatus", raw.get("status", GameStatus.SETUP.value)),
            "teams": [_legacy_team(t) for t in raw.get("teams") or []],
        }
    rooms: dict = {}
    for sid, raw in (state.get("waitingRooms") or {}).items():
        players = raw.get("players", []) if isinstance(raw, Mapping) else raw
        rooms[sid] = {"players": [_legacy_player(p) for p in players or []]}
    return {"version": 1, "games": games, "rooms": rooms}


_MIGRATIONS: Dict[int, Callable[[Mapping[str, Any]], dict]] = {
    0: _migrate_v0,
}


def _payload_version(payload: Mapping[str, Any]) -> int:
    version = payload.get("version")
    if version is None:
        return 0 if "state" in payload else CACHE_VERSION
    return int(version)


def migrate_payload(payload: Mapping[str, Any]) -> dict:
    """Upgrade ``payload`` step by step to :data:`CACHE_VERSION`."""

    if not isinstance(payload, Mapping):
        raise TypeError(f"Cache payload must be a mapping, got {type(payload).__name__}")

    version = _payload_version(payload)
    if version > CACHE_VERSION:
        raise SnapshotVersionError(
            f"Cache payload version {version} is newer than supported {CACHE_VERSION}"
        )
    current: dict = dict(payload)
    while version < CACHE_VERSION:
        if version not in _MIGRATIONS:
            raise SnapshotVersionError(f"Cache payload version {version} is not supported")
        current = _MIGRATIONS[version](current)
        logger.info("Migrated session cache payload from v%d", version)
        version = _payload_version(current)
    return current


def _unique_players(raw_players: Any, sid: str) -> List[Player]:
    players: List[Player] = []
    seen: set[str] = set()
    for raw in raw_players or []:
        player = Player.model_validate(raw)
        if player.id in seen:
            logger.warning("Dropping duplicate player id %s in session %s", player.id, sid)
            continue
        seen.add(player.id)
        players.append(player)
    return players


def _load_game(sid: str, raw: Mapping[str, Any]) -> GameSession:
    teams = [Team.model_validate(team) for team in raw.get("teams") or []]
    status = GameStatus(raw.get("status") or GameStatus.SETUP.value)
    if status is GameStatus.SORTING:
        # Sorting is synchronous; a persisted "sorting" means the write raced a crash.
        status = GameStatus.COMPLETE if teams else GameStatus.SETUP
    team_count = raw.get("team_count")
    return GameSession(
        players=_unique_players(raw.get("players"), sid),
        team_count=clamp_team_count(team_count if team_count is not None else DEFAULT_LIMITS.default_teams),
        status=status,
        teams=teams,
    )


def _load_room(sid: str, raw: Mapping[str, Any]) -> WaitingRoom:
    return WaitingRoom(players=_unique_players(raw.get("players"), sid))


def load_snapshot(payload: Mapping[str, Any]) -> CacheSnapshot:
    """Migrate and validate ``payload`` into live session objects.

    Sessions that fail validation are dropped one by one; the rest survive.
    """

    current = migrate_payload(payload)
    snapshot = CacheSnapshot()
    for sid, raw in (current.get("games") or {}).items():
        try:
            snapshot.games[sid] = _load_game(sid, raw)
        except _INVALID_SESSION_ERRORS as exc:
            logger.warning("Discarding unreadable cached game %s: %s", sid, exc)
    for sid, raw in (current.get("rooms") or {}).items():
        try:
            snapshot.rooms[sid] = _load_room(sid, raw)
        except _INVALID_SESSION_ERRORS as exc:
            logger.warning("Discarding unreadable cached waiting room %s: %s", sid, exc)
    return snapshot
