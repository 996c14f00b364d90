"""Utility functions and helpers package."""

from .helpers import comparable_instant, parse_iso_date, parse_time_of_day
from .logging import VERBOSE, get_log_level, setup_logging

__all__ = [
    "VERBOSE",
    "comparable_instant",
    "get_log_level",
    "parse_iso_date",
    "parse_time_of_day",
    "setup_logging",
]
