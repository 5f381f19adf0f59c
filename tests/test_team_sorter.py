import random
from collections import Counter

import pytest

from futmeet.models import Player
from futmeet.sorter import sort_teams


def _player(pid: str, priority: bool = False) -> Player:
    return Player(id=pid, name=f"Player {pid}", priority=priority)


def _random_roster(seed: int) -> tuple[list[Player], int]:
    rng = random.Random(seed)
    size = rng.randint(0, 40)
    roster = [_player(f"p{i}", priority=rng.random() < 0.3) for i in range(size)]
    return roster, rng.randint(2, 10)


def _ids(team) -> list[str]:
    return [player.id for player in team.players]


def test_team_count_below_two_returns_no_teams():
    assert sort_teams([_player("1")], 1) == []
    assert sort_teams([], 0) == []
    assert sort_teams([_player("1"), _player("2")], -3) == []


def test_empty_roster_returns_empty_named_teams():
    teams = sort_teams([], 3)

    assert [team.name for team in teams] == ["Team 1", "Team 2", "Team 3"]
    assert all(team.players == () for team in teams)


def test_regular_round_robin_keeps_order():
    roster = [_player(str(i)) for i in range(1, 6)]

    teams = sort_teams(roster, 2)

    assert _ids(teams[0]) == ["1", "3", "5"]
    assert _ids(teams[1]) == ["2", "4"]


def test_priority_players_are_dealt_first():
    roster = [
        _player("r1"),
        _player("p1", priority=True),
        _player("r2"),
        _player("p2", priority=True),
    ]

    teams = sort_teams(roster, 2)

    assert _ids(teams[0]) == ["p1", "r1"]
    assert _ids(teams[1]) == ["p2", "r2"]


def test_regular_players_continue_after_last_priority_team():
    roster = [
        _player("p1", priority=True),
        _player("r1"),
        _player("r2"),
        _player("r3"),
        _player("r4"),
    ]

    teams = sort_teams(roster, 3)

    assert _ids(teams[0]) == ["p1", "r3"]
    assert _ids(teams[1]) == ["r1", "r4"]
    assert _ids(teams[2]) == ["r2"]


def test_more_teams_than_players():
    teams = sort_teams([_player("a"), _player("b")], 4)

    assert [len(team.players) for team in teams] == [1, 1, 0, 0]


def test_duplicate_names_are_distinct_players():
    roster = [Player(id="x", name="Sam"), Player(id="y", name="Sam")]

    teams = sort_teams(roster, 2)

    assert _ids(teams[0]) == ["x"]
    assert _ids(teams[1]) == ["y"]


def test_team_ids_are_fresh_on_every_sort():
    roster = [_player("1"), _player("2")]

    first = {team.id for team in sort_teams(roster, 2)}
    second = {team.id for team in sort_teams(roster, 2)}

    assert len(first) == 2
    assert first.isdisjoint(second)


def test_custom_id_factory():
    counter = iter(range(100))

    teams = sort_teams([_player("1")], 2, id_factory=lambda: f"team-{next(counter)}")

    assert [team.id for team in teams] == ["team-0", "team-1"]


@pytest.mark.parametrize("seed", range(40))
def test_partition_properties(seed: int):
    roster, team_count = _random_roster(seed)

    teams = sort_teams(roster, team_count)

    assert len(teams) == team_count
    assigned = Counter(pid for team in teams for pid in _ids(team))
    assert assigned == Counter(player.id for player in roster)
    sizes = [len(team.players) for team in teams]
    assert max(sizes) - min(sizes) <= 1


@pytest.mark.parametrize("seed", range(40))
def test_priority_spread_and_in_team_order(seed: int):
    roster, team_count = _random_roster(seed)
    position = {player.id: index for index, player in enumerate(roster)}

    teams = sort_teams(roster, team_count)

    priority_counts = [sum(1 for p in team.players if p.priority) for team in teams]
    assert max(priority_counts) - min(priority_counts) <= 1
    priority_total = sum(priority_counts)
    if priority_total <= team_count:
        assert all(count <= 1 for count in priority_counts)
        assert priority_counts[:priority_total] == [1] * priority_total

    for team in teams:
        flags = [p.priority for p in team.players]
        assert flags == sorted(flags, reverse=True)
        priority_positions = [position[p.id] for p in team.players if p.priority]
        regular_positions = [position[p.id] for p in team.players if not p.priority]
        assert priority_positions == sorted(priority_positions)
        assert regular_positions == sorted(regular_positions)
