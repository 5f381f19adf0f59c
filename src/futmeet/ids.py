"""Session identifier helpers shared by games and waiting rooms."""

from __future__ import annotations

import re
import secrets
import string

# Alphanumeric only: messaging apps treat _ and - as formatting markers and break links.
SESSION_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
SESSION_ID_LENGTH = 21

# Legacy identifiers may still contain _ or -.
_SESSION_ID_RE = re.compile(r"^[A-Za-z0-9_-]{21}$")


def generate_session_id() -> str:
    return "".join(secrets.choice(SESSION_ALPHABET) for _ in range(SESSION_ID_LENGTH))


def is_valid_session_id(value: str) -> bool:
    return isinstance(value, str) and _SESSION_ID_RE.fullmatch(value) is not None
