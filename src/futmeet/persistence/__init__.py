"""Best-effort durable cache for the session mapping."""

from __future__ import annotations

import json
import logging
import sqlite3
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Optional

from pydantic import ValidationError

from futmeet.config import cache_key, cache_path
from futmeet.models import GameSession, WaitingRoom

from .migrations import (
    CACHE_VERSION,
    CacheSnapshot,
    SnapshotVersionError,
    dump_snapshot,
    load_snapshot,
    migrate_payload,
)


logger = logging.getLogger(__name__)

_UNREADABLE_ERRORS = (
    sqlite3.Error,
    OSError,
    json.JSONDecodeError,
    ValidationError,
    ValueError,
    TypeError,
    AttributeError,
)


class SessionCache:
    """SQLite-backed store holding one serialized session mapping per key."""

    def __init__(self, db_path: Path | str | None = None, *, key: str | None = None):
        self._use_uri = False
        resolved = db_path if db_path is not None else cache_path()
        if isinstance(resolved, str) and resolved.startswith("file:"):
            self.db_path: Path | str = resolved
            self._use_uri = True
        else:
            self.db_path = Path(resolved)
        self.key = key or cache_key()
        self._ensure_schema()

    def _fallback_connect(self) -> sqlite3.Connection:
        fallback_dir = Path(tempfile.gettempdir()) / "futmeet-runtime"
        fallback_dir.mkdir(parents=True, exist_ok=True)
        fallback = fallback_dir / "futmeet.sqlite"
        logger.warning("Cannot open session cache at %s; using %s", self.db_path, fallback)
        conn = sqlite3.connect(fallback)
        self.db_path = fallback
        self._use_uri = False
        self._create_schema(conn)
        return conn

    def _connect(self) -> sqlite3.Connection:
        try:
            if isinstance(self.db_path, Path):
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(self.db_path)
            else:
                conn = sqlite3.connect(self.db_path, uri=self._use_uri)
        except (sqlite3.OperationalError, OSError):
            conn = self._fallback_connect()
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        try:
            with self._connect() as conn:
                self._create_schema(conn)
        except sqlite3.DatabaseError as exc:
            logger.warning("Session cache %s is unreadable (%s); starting fresh", self.db_path, exc)
            self._discard_damaged()
            with self._connect() as conn:
                self._create_schema(conn)

    def _discard_damaged(self) -> None:
        """Move a damaged database file aside, or switch to the fallback location."""

        if isinstance(self.db_path, Path):
            damaged = self.db_path.with_name(self.db_path.name + ".corrupt")
            try:
                self.db_path.replace(damaged)
                return
            except OSError as exc:
                logger.warning("Cannot move damaged session cache aside: %s", exc)
        self._fallback_connect().close()

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS session_cache (
                id TEXT PRIMARY KEY,
                version INTEGER NOT NULL,
                payload_json TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        conn.commit()

    def write_payload(self, payload: Mapping) -> None:
        """Store a raw payload. Errors propagate; see :meth:`save` for the safe path."""

        now = datetime.now(timezone.utc).isoformat()
        version = int(payload.get("version", CACHE_VERSION))
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO session_cache (id, version, payload_json, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    version = excluded.version,
                    payload_json = excluded.payload_json,
                    updated_at = excluded.updated_at
                """,
                (self.key, version, json.dumps(payload), now),
            )
            conn.commit()

    def read_payload(self) -> Optional[dict]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT payload_json FROM session_cache WHERE id = ?",
                (self.key,),
            ).fetchone()
        if row is None:
            return None
        return json.loads(row["payload_json"])

    def save(
        self,
        games: Mapping[str, GameSession],
        rooms: Mapping[str, WaitingRoom],
    ) -> bool:
        """Persist the session mapping; return False (and log) instead of raising."""

        try:
            self.write_payload(dump_snapshot(games, rooms))
        except (sqlite3.Error, OSError, TypeError, ValueError) as exc:
            logger.warning("Failed to write session cache %s: %s", self.key, exc)
            return False
        return True

    def load(self) -> CacheSnapshot:
        """Rehydrate the session mapping, degrading to an empty snapshot on failure."""

        try:
            payload = self.read_payload()
            if payload is None:
                return CacheSnapshot()
            return load_snapshot(payload)
        except _UNREADABLE_ERRORS as exc:
            logger.warning("Failed to rehydrate session cache %s: %s", self.key, exc)
            return CacheSnapshot()

    def clear(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM session_cache WHERE id = ?", (self.key,))
            conn.commit()


__all__ = [
    "CACHE_VERSION",
    "CacheSnapshot",
    "SessionCache",
    "SnapshotVersionError",
    "dump_snapshot",
    "load_snapshot",
    "migrate_payload",
]
