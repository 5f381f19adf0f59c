import json
import logging
from datetime import datetime, timezone
from pathlib import Path

import pytest

from futmeet.models import GameStatus
from futmeet.persistence import (
    CACHE_VERSION,
    SessionCache,
    SnapshotVersionError,
    load_snapshot,
    migrate_payload,
)
from futmeet.store import SessionStore

SID = "gameAAAAAAAAAAAAAAAAA"


@pytest.fixture
def cache(tmp_path: Path) -> SessionCache:
    return SessionCache(tmp_path / "cache.sqlite", key="test")


def _player(pid: str, name: str, **extra) -> dict:
    payload = {"id": pid, "name": name, "created_at": "2024-06-01T10:00:00+00:00", "priority": False}
    payload.update(extra)
    return payload


def test_store_writes_through_and_rehydrates(cache: SessionCache):
    store = SessionStore(cache=cache)
    store.init_session(SID)
    alice = store.add_player(SID, "Alice")
    store.add_player(SID, "Bob")
    store.toggle_priority(SID, alice.id)
    store.set_team_count(SID, 3)
    store.sort_teams(SID)
    store.init_room("room")
    store.add_room_player("room", "Carol")

    restored = SessionStore(cache=cache)

    game = restored.game(SID)
    assert [p.name for p in game.players] == ["Alice", "Bob"]
    assert game.players[0].priority is True
    assert isinstance(game.players[0].created_at, datetime)
    assert game.team_count == 3
    assert game.status is GameStatus.COMPLETE
    assert [team.name for team in game.teams] == ["Team 1", "Team 2", "Team 3"]
    assert [p.name for p in restored.room_players("room")] == ["Carol"]


def test_empty_cache_loads_empty_store(cache: SessionCache):
    store = SessionStore(cache=cache)

    assert store.game_ids() == []
    assert store.room_ids() == []


def test_rehydrate_revives_timestamps_and_reclamps_team_count(cache: SessionCache):
    cache.write_payload(
        {
            "version": CACHE_VERSION,
            "games": {
                SID: {
                    "players": [_player("p1", "Alice", created_at="2024-06-01T10:00:00")],
                    "team_count": 42,
                    "status": "setup",
                    "teams": [],
                },
                "low": {"players": [], "team_count": 0, "status": "setup", "teams": []},
            },
            "rooms": {},
        }
    )

    store = SessionStore(cache=cache)

    assert store.team_count(SID) == 10
    assert store.team_count("low") == 2
    created = store.players(SID)[0].created_at
    assert created == datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)


def test_corrupt_blob_degrades_to_empty_store(cache: SessionCache, caplog):
    with cache._connect() as conn:
        conn.execute(
            "INSERT INTO session_cache (id, version, payload_json, updated_at) VALUES (?, ?, ?, ?)",
            (cache.key, 1, "{not json", "2024-01-01T00:00:00+00:00"),
        )
        conn.commit()

    with caplog.at_level(logging.WARNING):
        store = SessionStore(cache=cache)

    assert store.game_ids() == []
    assert "Failed to rehydrate session cache" in caplog.text


def test_wrong_shape_degrades_to_empty_store(cache: SessionCache):
    cache.write_payload({"version": 1, "games": ["not", "a", "mapping"]})

    store = SessionStore(cache=cache)

    assert store.game_ids() == []


def test_invalid_session_is_dropped_and_others_survive(cache: SessionCache):
    cache.write_payload(
        {
            "version": 1,
            "games": {
                "bad": {"players": [{"name": "no id"}], "team_count": 2, "status": "setup", "teams": []},
                "odd": {"players": [], "team_count": 2, "status": "exploded", "teams": []},
                SID: {"players": [_player("p1", "Alice")], "team_count": 2, "status": "setup", "teams": []},
            },
            "rooms": {"broken": "nope"},
        }
    )

    store = SessionStore(cache=cache)

    assert store.game_ids() == [SID]
    assert store.room_ids() == []


def test_newer_version_is_rejected_and_store_starts_empty(cache: SessionCache):
    cache.write_payload({"version": CACHE_VERSION + 1, "games": {SID: {}}, "rooms": {}})

    with pytest.raises(SnapshotVersionError):
        load_snapshot(cache.read_payload())
    assert SessionStore(cache=cache).game_ids() == []


def test_unknown_old_version_is_rejected_and_store_starts_empty(cache: SessionCache):
    cache.write_payload({"version": -1, "games": {SID: {}}, "rooms": {}})

    with pytest.raises(SnapshotVersionError):
        load_snapshot(cache.read_payload())
    assert SessionStore(cache=cache).game_ids() == []


def test_damaged_database_file_starts_empty_store(tmp_path: Path, caplog):
    path = tmp_path / "cache.sqlite"
    path.write_bytes(b"this is not a sqlite database" * 64)

    with caplog.at_level(logging.WARNING):
        store = SessionStore(cache=SessionCache(path, key="test"))

    assert store.game_ids() == []
    assert store.room_ids() == []
    assert "is unreadable" in caplog.text
    assert (tmp_path / "cache.sqlite.corrupt").exists()

    store.init_session(SID)
    store.add_player(SID, "Alice")
    restored = SessionStore(cache=SessionCache(path, key="test"))
    assert [p.name for p in restored.players(SID)] == ["Alice"]


def test_duplicate_player_ids_are_deduplicated():
    snapshot = load_snapshot(
        {
            "version": 1,
            "games": {},
            "rooms": {"room": {"players": [_player("p1", "Alice"), _player("p1", "Alice again")]}},
        }
    )

    assert [p.name for p in snapshot.rooms["room"].players] == ["Alice"]


def test_persisted_sorting_status_is_settled():
    snapshot = load_snapshot(
        {
            "version": 1,
            "games": {SID: {"players": [], "team_count": 2, "status": "sorting", "teams": []}},
            "rooms": {},
        }
    )

    assert snapshot.games[SID].status is GameStatus.SETUP


def test_migrates_legacy_browser_payload():
    legacy = {
        "state": {
            "games": {
                SID: {
                    "players": [
                        {"id": "a", "name": "Alice", "timestamp": "2024-06-01T10:00:00.000Z", "priority": True},
                        {"id": "b", "name": "Bob", "timestamp": "2024-06-01T10:01:00.000Z", "priority": False},
                    ],
                    "teams": [
                        {
                            "id": "team-1",
                            "name": "Team 1",
                            "players": [
                                {"id": "a", "name": "Alice", "timestamp": "2024-06-01T10:00:00.000Z", "priority": True}
                            ],
                        }
                    ],
                    "teamCount": 15,
                    "gameStatus": "complete",
                }
            },
            "waitingRooms": {
                "room": [{"id": "c", "name": "Carol", "timestamp": "2024-06-01T09:00:00.000Z", "priority": False}]
            },
        },
        "version": 0,
    }

    migrated = migrate_payload(legacy)
    assert migrated["version"] == CACHE_VERSION
    assert migrated["games"][SID]["team_count"] == 15

    snapshot = load_snapshot(legacy)
    game = snapshot.games[SID]
    assert [p.name for p in game.players] == ["Alice", "Bob"]
    assert game.players[0].created_at == datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)
    assert game.team_count == 10
    assert game.status is GameStatus.COMPLETE
    assert game.teams[0].players[0].id == "a"
    assert [p.name for p in snapshot.rooms["room"].players] == ["Carol"]


def test_payload_is_plain_json(cache: SessionCache):
    store = SessionStore(cache=cache)
    store.init_session(SID)
    store.add_player(SID, "Alice")

    payload = cache.read_payload()

    assert payload["version"] == CACHE_VERSION
    player = payload["games"][SID]["players"][0]
    assert player["name"] == "Alice"
    assert isinstance(player["created_at"], str)
    json.dumps(payload)


def test_save_failure_is_logged_not_raised(cache: SessionCache, monkeypatch, caplog):
    import sqlite3

    def broken(payload):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(cache, "write_payload", broken)
    store = SessionStore(cache=cache)

    with caplog.at_level(logging.WARNING):
        store.init_session(SID)
        store.add_player(SID, "Alice")

    assert [p.name for p in store.players(SID)] == ["Alice"]
    assert "Failed to write session cache" in caplog.text


def test_cache_path_from_environment(tmp_path: Path, monkeypatch):
    target = tmp_path / "nested" / "env.sqlite"
    monkeypatch.setenv("FUTMEET_CACHE_PATH", str(target))
    monkeypatch.setenv("FUTMEET_CACHE_KEY", "env-key")

    cache = SessionCache()

    assert cache.db_path == target
    assert cache.key == "env-key"
    assert target.exists()


def test_clear_removes_payload(cache: SessionCache):
    cache.write_payload({"version": 1, "games": {}, "rooms": {}})

    cache.clear()

    assert cache.read_payload() is None
