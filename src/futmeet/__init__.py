"""Roster management and team sorting for pickup games."""
