"""Boundary schemas validating user input before it reaches the store."""

from .player import AddPlayerInput, TeamSettingsInput

__all__ = ["AddPlayerInput", "TeamSettingsInput"]
