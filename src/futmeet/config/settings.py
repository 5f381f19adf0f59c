"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from pathlib import Path

_CACHE_PATH_ENV = "FUTMEET_CACHE_PATH"
_CACHE_KEY_ENV = "FUTMEET_CACHE_KEY"

_CACHE_KEY_DEFAULT = "futmeet-game-storage"
_CACHE_PATH_DEFAULT = Path.home() / ".futmeet" / "futmeet.sqlite"


def cache_path() -> Path | str:
    """Resolve the cache database location.

    ``file:`` URIs are returned untouched so SQLite can open them in URI mode.
    """

    raw = os.getenv(_CACHE_PATH_ENV, "").strip()
    if not raw:
        return _CACHE_PATH_DEFAULT
    if raw.startswith("file:"):
        return raw
    return Path(raw).expanduser()


def cache_key() -> str:
    raw = os.getenv(_CACHE_KEY_ENV, "").strip()
    return raw or _CACHE_KEY_DEFAULT
