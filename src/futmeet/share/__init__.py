"""Text summaries of rosters and teams for pasting into messaging apps."""

from .export import (
    RosterSummary,
    format_room_message,
    format_teams_message,
    roster_summary,
    whatsapp_share_url,
)

__all__ = [
    "RosterSummary",
    "format_room_message",
    "format_teams_message",
    "roster_summary",
    "whatsapp_share_url",
]
