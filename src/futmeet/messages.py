"""User-facing error messages."""

from __future__ import annotations

import sqlite3
from typing import Mapping

from pydantic import ValidationError


ERROR_MESSAGES: Mapping[str, str] = {
    "STORAGE_ERROR": "Unable to save your data. Please try again.",
    "VALIDATION_ERROR": "Please check your input and try again.",
    "UNKNOWN_ERROR": "Something went wrong. Please try again.",
    "GAME_NOT_FOUND": "This game session could not be found.",
    "NETWORK_ERROR": "A network error occurred. Please check your connection.",
}


def describe_error(error: BaseException) -> str:
    """Map an exception onto one of :data:`ERROR_MESSAGES`."""

    if isinstance(error, ValidationError):
        first = error.errors()[0] if error.errors() else None
        if first and first.get("msg"):
            return str(first["msg"]).removeprefix("Value error, ")
        return ERROR_MESSAGES["VALIDATION_ERROR"]
    if isinstance(error, ConnectionError):
        return ERROR_MESSAGES["NETWORK_ERROR"]
    if isinstance(error, (sqlite3.Error, OSError)):
        return ERROR_MESSAGES["STORAGE_ERROR"]
    text = str(error).lower()
    if "storage" in text or "quota" in text:
        return ERROR_MESSAGES["STORAGE_ERROR"]
    if "network" in text or "fetch" in text:
        return ERROR_MESSAGES["NETWORK_ERROR"]
    return ERROR_MESSAGES["UNKNOWN_ERROR"]
