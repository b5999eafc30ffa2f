"""Schedle: social scheduling core (friends, notifications, calendar)."""

__version__ = "0.1.0"
