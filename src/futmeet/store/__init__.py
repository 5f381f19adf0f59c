"""Session store owning game and waiting-room state."""

from .sessions import Listener, SessionKind, SessionStore, StoreEvent

__all__ = ["Listener", "SessionKind", "SessionStore", "StoreEvent"]
