"""Synchronize an Org-mode outline with a reminders store."""

__version__ = "0.3.0"
