"""Team sorting built on a priority-first round-robin."""

from .service import sort_teams

__all__ = ["sort_teams"]
