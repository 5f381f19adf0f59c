"""Command-line interface for managing waiting rooms, games and team sorting."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from pydantic import ValidationError

from futmeet.ids import generate_session_id, is_valid_session_id
from futmeet.messages import ERROR_MESSAGES, describe_error
from futmeet.models import Player
from futmeet.persistence import SessionCache
from futmeet.schemas import AddPlayerInput, TeamSettingsInput
from futmeet.share import (
    format_room_message,
    format_teams_message,
    roster_summary,
    whatsapp_share_url,
)
from futmeet.store import SessionStore


def _add_roster_actions(actions: argparse._SubParsersAction) -> None:
    add = actions.add_parser("add", help="Add one or more players")
    add.add_argument("names", nargs="+", help="Player names")

    remove = actions.add_parser("remove", help="Remove a player by id")
    remove.add_argument("player_id")

    priority = actions.add_parser("priority", help="Toggle a player's priority flag")
    priority.add_argument("player_id")

    move = actions.add_parser("move", help="Move a player from one position to another (1-based)")
    move.add_argument("from_position", type=int)
    move.add_argument("to_position", type=int)

    actions.add_parser("show", help="Print the current roster")

    share = actions.add_parser("share", help="Print the share text")
    share.add_argument("--url", action="store_true", help="Print a WhatsApp share link instead")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Organize pickup games and sort balanced teams")
    parser.add_argument("--cache", type=Path, default=None, help="Session cache database path")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("new-id", help="Print a fresh session identifier")

    room = commands.add_parser("room", help="Manage a waiting room")
    room.add_argument("sid", help="Waiting room identifier")
    room_actions = room.add_subparsers(dest="action", required=True)
    _add_roster_actions(room_actions)
    room_actions.add_parser("clear", help="Remove every player from the room")
    room_actions.add_parser("start", help="Create a game from the room's roster")

    game = commands.add_parser("game", help="Manage a game")
    game.add_argument("sid", help="Game identifier")
    game_actions = game.add_subparsers(dest="action", required=True)
    _add_roster_actions(game_actions)
    teams = game_actions.add_parser("teams", help="Set the number of teams")
    teams.add_argument("count", type=int)
    game_actions.add_parser("sort", help="Sort the roster into teams")

    return parser.parse_args(argv)


def _print_roster(players: Sequence[Player]) -> None:
    summary = roster_summary(players)
    print(f"{summary.total} players ({summary.priority} priority, {summary.regular} regular)")
    for index, player in enumerate(players, start=1):
        flag = " *" if player.priority else ""
        print(f"{index:>3}. {player.name}{flag}  [{player.id}]")


def _add_players(store: SessionStore, sid: str, names: Sequence[str], *, room: bool) -> None:
    validated = [AddPlayerInput(name=name).name for name in names]
    for name in validated:
        player = store.add_room_player(sid, name) if room else store.add_player(sid, name)
        if player is not None:
            print(f"Added {player.name} [{player.id}]")


def _run_room(store: SessionStore, args: argparse.Namespace) -> int:
    sid = args.sid
    store.init_room(sid)
    if args.action == "add":
        _add_players(store, sid, args.names, room=True)
    elif args.action == "remove":
        store.remove_room_player(sid, args.player_id)
    elif args.action == "priority":
        store.toggle_room_priority(sid, args.player_id)
    elif args.action == "move":
        store.reorder_room_players(sid, args.from_position - 1, args.to_position - 1)
    elif args.action == "clear":
        store.clear_room(sid)
        print(f"Cleared waiting room {sid}")
    elif args.action == "start":
        game_id = store.materialize_game_from_room(sid)
        print(f"Created game {game_id} with {len(store.players(game_id))} players")
    elif args.action == "share":
        text = format_room_message(store.room_players(sid))
        print(whatsapp_share_url(text) if args.url else text)
    if args.action in {"remove", "priority", "move", "show"}:
        _print_roster(store.room_players(sid))
    return 0


def _run_game(store: SessionStore, args: argparse.Namespace) -> int:
    sid = args.sid
    store.init_session(sid)
    if args.action == "add":
        _add_players(store, sid, args.names, room=False)
    elif args.action == "remove":
        store.remove_player(sid, args.player_id)
    elif args.action == "priority":
        store.toggle_priority(sid, args.player_id)
    elif args.action == "move":
        store.reorder_players(sid, args.from_position - 1, args.to_position - 1)
    elif args.action == "teams":
        settings = TeamSettingsInput(team_count=args.count)
        store.set_team_count(sid, settings.team_count)
        print(f"Team count set to {store.team_count(sid)}")
    elif args.action == "sort":
        store.sort_teams(sid)
        print(format_teams_message(store.teams(sid)))
    elif args.action == "share":
        text = format_teams_message(store.teams(sid))
        print(whatsapp_share_url(text) if args.url else text)
    if args.action in {"remove", "priority", "move", "show"}:
        print(f"Status: {store.status(sid).value}, teams: {store.team_count(sid)}")
        _print_roster(store.players(sid))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "new-id":
        print(generate_session_id())
        return 0

    if not is_valid_session_id(args.sid):
        print(ERROR_MESSAGES["GAME_NOT_FOUND"])
        return 2

    store = SessionStore(cache=SessionCache(args.cache))
    try:
        if args.command == "room":
            return _run_room(store, args)
        return _run_game(store, args)
    except ValidationError as exc:
        print(describe_error(exc))
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
