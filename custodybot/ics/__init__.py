"""iCalendar decoding and encoding module."""

from .encoder import ICSEncoder
from .exceptions import ICSEncodeError, ICSError, ICSParseError
from .models import ICSParseResult, NormalizedCalendarEvent, RecurrenceFrequency, RecurrenceRule
from .parser import ICSParser

__all__ = [
    "ICSEncodeError",
    "ICSEncoder",
    "ICSError",
    "ICSParseError",
    "ICSParseResult",
    "ICSParser",
    "NormalizedCalendarEvent",
    "RecurrenceFrequency",
    "RecurrenceRule",
]
