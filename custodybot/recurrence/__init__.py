"""Expansion of custody schedules and recurring calendar events."""

from .expander import RecurrenceExpander, RecurrenceExpansionError

__all__ = [
    "RecurrenceExpander",
    "RecurrenceExpansionError",
]
