"""Share-text helpers for waiting rooms and sorted teams."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence
from urllib.parse import quote

from futmeet.models import Player, Team


PRIORITY_MARK = "⭐"
BALL = "⚽"
WHATSAPP_BASE_URL = "https://wa.me/"

# Characters encodeURIComponent leaves untouched.
_URI_COMPONENT_SAFE = "-_.!~*'()"


@dataclass(frozen=True)
class RosterSummary:
    total: int
    priority: int
    regular: int


def roster_summary(players: Iterable[Player]) -> RosterSummary:
    total = 0
    priority = 0
    for player in players:
        total += 1
        if player.priority:
            priority += 1
    return RosterSummary(total=total, priority=priority, regular=total - priority)


def _numbered(players: Sequence[Player]) -> list[str]:
    return [
        f"{index}. {player.name}{' ' + PRIORITY_MARK if player.priority else ''}"
        for index, player in enumerate(players, start=1)
    ]


def format_room_message(players: Sequence[Player]) -> str:
    """Build the waiting-room invitation listing everyone who confirmed."""

    label = "player" if len(players) == 1 else "players"
    lines = [
        f"{BALL} *FutMeet - Waiting Room*",
        "",
        f"Who's playing? ({len(players)} {label} confirmed)",
        "",
        *_numbered(players),
        "",
        "_Confirm your spot before the game!_",
    ]
    return "\n".join(lines)


def format_teams_message(teams: Sequence[Team]) -> str:
    blocks = [f"{BALL} *FutMeet - Teams*"]
    for team in teams:
        header = f"*{team.name}* ({len(team.players)})"
        body = _numbered(team.players) or ["(no players)"]
        blocks.append("\n".join([header, *body]))
    return "\n\n".join(blocks)


def whatsapp_share_url(text: str) -> str:
    return f"{WHATSAPP_BASE_URL}?text={quote(text, safe=_URI_COMPONENT_SAFE)}"
