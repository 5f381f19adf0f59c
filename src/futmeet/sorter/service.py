"""Pure team sorter: priority-first round-robin distribution."""

from __future__ import annotations

from typing import Callable, List, Sequence
from uuid import uuid4

from futmeet.models import Player, Team


def _new_team_id() -> str:
    return uuid4().hex


def _round_robin(
    players: Sequence[Player],
    buckets: List[List[Player]],
    start: int,
) -> int:
    """Append ``players`` to ``buckets`` cyclically from ``start``; return the next index."""

    count = len(buckets)
    for offset, player in enumerate(players):
        buckets[(start + offset) % count].append(player)
    return (start + len(players)) % count


def sort_teams(
    players: Sequence[Player],
    team_count: int,
    *,
    id_factory: Callable[[], str] = _new_team_id,
) -> List[Team]:
    """Partition ``players`` into ``team_count`` teams.

    Priority players are dealt first starting at team 0; regular players continue
    from the team after the last priority assignment, so team sizes never differ
    by more than one. Relative roster order is kept inside each team. A
    ``team_count`` below 2 yields no teams at all.
    """

    if team_count < 2:
        return []

    buckets: List[List[Player]] = [[] for _ in range(team_count)]
    if players:
        priority = [player for player in players if player.priority]
        regular = [player for player in players if not player.priority]
        next_index = _round_robin(priority, buckets, 0)
        _round_robin(regular, buckets, next_index)

    return [
        Team(id=id_factory(), name=f"Team {index + 1}", players=tuple(bucket))
        for index, bucket in enumerate(buckets)
    ]
