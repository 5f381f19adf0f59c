"""Session store: the single owner of game and waiting-room state.

Every mutation runs under one re-entrant lock around the whole mapping, so
operations are applied in issue order and each one observes the fully applied
result of the ones before it. Operations addressed at a missing session or an
unknown player id are silent no-ops.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from futmeet.config import DEFAULT_LIMITS, clamp_team_count
from futmeet.models import GameSession, GameStatus, Player, Team, WaitingRoom, new_player
from futmeet.persistence import SessionCache
from futmeet.sorter import sort_teams as compute_teams


logger = logging.getLogger(__name__)


class SessionKind(str, Enum):
    GAME = "game"
    ROOM = "room"


@dataclass(frozen=True)
class StoreEvent:
    kind: SessionKind
    session_id: Optional[str]
    action: str


Listener = Callable[[StoreEvent], None]


def _without_player(players: List[Player], player_id: str) -> List[Player]:
    return [player for player in players if player.id != player_id]


def _toggle(players: List[Player], player_id: str) -> Optional[List[Player]]:
    found = False
    toggled: List[Player] = []
    for player in players:
        if player.id == player_id:
            player = player.model_copy(update={"priority": not player.priority})
            found = True
        toggled.append(player)
    return toggled if found else None


def _move(players: List[Player], from_index: int, to_index: int) -> Optional[List[Player]]:
    size = len(players)
    if not 0 <= from_index < size:
        logger.debug("Ignoring reorder from out-of-range index %s (size %d)", from_index, size)
        return None
    target = max(0, min(size - 1, to_index))
    moved = list(players)
    player = moved.pop(from_index)
    moved.insert(target, player)
    return moved


def _copy_players(players: List[Player]) -> List[Player]:
    return [player.model_copy(update={"id": uuid4().hex}) for player in players]


class SessionStore:
    """Process-wide container for game and waiting-room sessions.

    Pass a :class:`~futmeet.persistence.SessionCache` to rehydrate on construction
    and write through after every mutation.
    """

    def __init__(self, cache: SessionCache | None = None):
        self._lock = threading.RLock()
        self._games: Dict[str, GameSession] = {}
        self._rooms: Dict[str, WaitingRoom] = {}
        self._listeners: List[Listener] = []
        self._cache = cache
        if cache is not None:
            snapshot = cache.load()
            self._games.update(snapshot.games)
            self._rooms.update(snapshot.rooms)

    # -- observers ---------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; call the returned function to unregister it."""

        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, kind: SessionKind, session_id: Optional[str], action: str) -> None:
        event = StoreEvent(kind=kind, session_id=session_id, action=action)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Store listener failed on %s for %s", action, session_id)

    def _commit(self, kind: SessionKind, session_id: Optional[str], action: str) -> None:
        """Write through to the cache and notify listeners; the SQLite write runs under the store lock."""

        if self._cache is not None:
            self._cache.save(self._games, self._rooms)
        self._notify(kind, session_id, action)

    # -- reads -------------------------------------------------------------

    def game(self, sid: str) -> Optional[GameSession]:
        with self._lock:
            session = self._games.get(sid)
            return session.snapshot() if session is not None else None

    def room(self, sid: str) -> Optional[WaitingRoom]:
        with self._lock:
            room = self._rooms.get(sid)
            return room.snapshot() if room is not None else None

    def players(self, sid: str) -> List[Player]:
        with self._lock:
            session = self._games.get(sid)
            return list(session.players) if session is not None else []

    def teams(self, sid: str) -> List[Team]:
        with self._lock:
            session = self._games.get(sid)
            return list(session.teams) if session is not None else []

    def team_count(self, sid: str) -> int:
        with self._lock:
            session = self._games.get(sid)
            return session.team_count if session is not None else DEFAULT_LIMITS.default_teams

    def status(self, sid: str) -> GameStatus:
        with self._lock:
            session = self._games.get(sid)
            return session.status if session is not None else GameStatus.SETUP

    def room_players(self, sid: str) -> List[Player]:
        with self._lock:
            room = self._rooms.get(sid)
            return list(room.players) if room is not None else []

    def game_ids(self) -> List[str]:
        with self._lock:
            return list(self._games)

    def room_ids(self) -> List[str]:
        with self._lock:
            return list(self._rooms)

    # -- game operations ---------------------------------------------------

    def init_session(self, sid: str) -> None:
        with self._lock:
            if sid in self._games:
                return
            self._games[sid] = GameSession()
            self._commit(SessionKind.GAME, sid, "init_session")

    def add_player(self, sid: str, raw_name: str) -> Optional[Player]:
        """Append a new player and return it, or None when the game is missing."""

        with self._lock:
            session = self._games.get(sid)
            if session is None:
                return None
            player = new_player(raw_name.strip())
            session.players = [*session.players, player]
            self._commit(SessionKind.GAME, sid, "add_player")
            return player

    def remove_player(self, sid: str, player_id: str) -> None:
        with self._lock:
            session = self._games.get(sid)
            if session is None:
                return
            in_teams = any(p.id == player_id for team in session.teams for p in team.players)
            players = _without_player(session.players, player_id)
            if len(players) == len(session.players) and not in_teams:
                return
            session.players = players
            session.teams = [
                team.model_copy(update={"players": tuple(_without_player(list(team.players), player_id))})
                for team in session.teams
            ]
            self._commit(SessionKind.GAME, sid, "remove_player")

    def toggle_priority(self, sid: str, player_id: str) -> None:
        with self._lock:
            session = self._games.get(sid)
            if session is None:
                return
            toggled = _toggle(session.players, player_id)
            if toggled is None:
                return
            session.players = toggled
            self._commit(SessionKind.GAME, sid, "toggle_priority")

    def reorder_players(self, sid: str, from_index: int, to_index: int) -> None:
        with self._lock:
            session = self._games.get(sid)
            if session is None:
                return
            moved = _move(session.players, from_index, to_index)
            if moved is None:
                return
            session.players = moved
            self._commit(SessionKind.GAME, sid, "reorder_players")

    def set_team_count(self, sid: str, count: float) -> None:
        with self._lock:
            session = self._games.get(sid)
            if session is None:
                return
            session.team_count = clamp_team_count(count)
            self._commit(SessionKind.GAME, sid, "set_team_count")

    def sort_teams(self, sid: str) -> None:
        with self._lock:
            session = self._games.get(sid)
            if session is None:
                return
            team_count = clamp_team_count(session.team_count)
            session.status = GameStatus.SORTING
            self._notify(SessionKind.GAME, sid, "sort_teams/start")

            session.teams = compute_teams(session.players, team_count)
            session.status = GameStatus.COMPLETE
            logger.debug(
                "Sorted %d players into %d teams for %s",
                len(session.players),
                team_count,
                sid,
            )
            self._commit(SessionKind.GAME, sid, "sort_teams/complete")

    # -- waiting-room operations ------------------------------------------

    def init_room(self, sid: str) -> None:
        with self._lock:
            if sid in self._rooms:
                return
            self._rooms[sid] = WaitingRoom()
            self._commit(SessionKind.ROOM, sid, "init_room")

    def add_room_player(self, sid: str, raw_name: str) -> Optional[Player]:
        with self._lock:
            room = self._rooms.get(sid)
            if room is None:
                return None
            player = new_player(raw_name.strip())
            room.players = [*room.players, player]
            self._commit(SessionKind.ROOM, sid, "add_room_player")
            return player

    def remove_room_player(self, sid: str, player_id: str) -> None:
        with self._lock:
            room = self._rooms.get(sid)
            if room is None:
                return
            players = _without_player(room.players, player_id)
            if len(players) == len(room.players):
                return
            room.players = players
            self._commit(SessionKind.ROOM, sid, "remove_room_player")

    def toggle_room_priority(self, sid: str, player_id: str) -> None:
        with self._lock:
            room = self._rooms.get(sid)
            if room is None:
                return
            toggled = _toggle(room.players, player_id)
            if toggled is None:
                return
            room.players = toggled
            self._commit(SessionKind.ROOM, sid, "toggle_room_priority")

    def reorder_room_players(self, sid: str, from_index: int, to_index: int) -> None:
        with self._lock:
            room = self._rooms.get(sid)
            if room is None:
                return
            moved = _move(room.players, from_index, to_index)
            if moved is None:
                return
            room.players = moved
            self._commit(SessionKind.ROOM, sid, "reorder_room_players")

    def clear_room(self, sid: str) -> None:
        with self._lock:
            room = self._rooms.get(sid)
            if room is None:
                return
            room.players = []
            self._commit(SessionKind.ROOM, sid, "clear_room")

    def materialize_game_from_room(self, sid: str) -> str:
        """Create (or overwrite) the game ``sid`` from a copy of the room's roster.

        Players are copied with fresh ids; the room is left untouched. A missing
        room behaves like an empty one.
        """

        with self._lock:
            room = self._rooms.get(sid)
            source = room.players if room is not None else []
            self._games[sid] = GameSession(players=_copy_players(source))
            self._commit(SessionKind.GAME, sid, "materialize_game_from_room")
            return sid

    # -- whole store -------------------------------------------------------

    def reset(self) -> None:
        with self._lock:
            self._games.clear()
            self._rooms.clear()
            self._commit(SessionKind.GAME, None, "reset")
