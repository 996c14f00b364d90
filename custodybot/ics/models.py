"""Data models for iCalendar import and export."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from ..models import WEEKDAY_INDEX, Weekday
from ..utils.helpers import comparable_instant


class RecurrenceFrequency(str, Enum):
    """Supported RRULE frequencies."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


class RecurrenceRule(BaseModel):
    """Structured form of an RRULE property."""

    frequency: RecurrenceFrequency = Field(..., description="FREQ component")
    interval: int = Field(default=1, ge=1, description="INTERVAL component")
    by_day: list[Weekday] = Field(default_factory=list, description="BYDAY weekday codes")
    count: Optional[int] = Field(default=None, ge=1, description="COUNT component")
    until: Optional[datetime] = Field(default=None, description="UNTIL component")
    week_start: Optional[Weekday] = Field(default=None, description="WKST component")

    model_config = ConfigDict(use_enum_values=True)

    @property
    def weekday_indexes(self) -> list[int]:
        """BYDAY as Python weekday numbers."""
        return [WEEKDAY_INDEX[day] for day in self.by_day]


class NormalizedCalendarEvent(BaseModel):
    """Calendar event normalized from ICS text or a provider adapter.

    ``start_time`` is timezone-aware (UTC) when the source marked it with a
    trailing ``Z`` and floating (naive, local) otherwise.
    """

    title: str = Field(..., min_length=1, description="Event title (SUMMARY)")
    description: Optional[str] = Field(default=None, description="Event description")
    location: Optional[str] = Field(default=None, description="Event location")

    start_time: datetime = Field(..., description="Event start instant")
    end_time: Optional[datetime] = Field(default=None, description="Event end instant")
    is_all_day: bool = Field(default=False, description="Date-only DTSTART")

    external_id: Optional[str] = Field(default=None, description="Source identifier (UID)")

    is_recurring: bool = Field(default=False, description="Source defines a repeat rule")
    recurrence_rule: Optional[RecurrenceRule] = Field(default=None, description="Parsed RRULE")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Reject blank titles."""
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty")
        return v

    @model_validator(mode="after")
    def validate_time_range(self) -> "NormalizedCalendarEvent":
        """Ensure the event does not end before it starts."""
        if self.end_time is not None and comparable_instant(self.end_time) < comparable_instant(
            self.start_time
        ):
            raise ValueError("end_time must not precede start_time")
        if self.recurrence_rule is not None and not self.is_recurring:
            raise ValueError("recurrence_rule requires is_recurring")
        return self

    @property
    def duration(self) -> Optional[timedelta]:
        """Event duration, or None for open-ended events."""
        if self.end_time is None:
            return None
        return comparable_instant(self.end_time) - comparable_instant(self.start_time)

    @property
    def occurrence_key(self) -> str:
        """Identity of this particular occurrence.

        ``external_id`` is shared by every occurrence expanded from one recurring
        event, so the start instant is appended.
        """
        base = self.external_id or self.title
        stamp = self.start_time.strftime("%Y%m%dT%H%M%S")
        if self.start_time.tzinfo is not None:
            stamp = comparable_instant(self.start_time).strftime("%Y%m%dT%H%M%S") + "Z"
        return f"{base}::{stamp}"

    @field_serializer("start_time", "end_time", when_used="unless-none")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetimes to ISO format."""
        return dt.isoformat()


class ICSParseResult(BaseModel):
    """Result of decoding ICS text."""

    events: list[NormalizedCalendarEvent] = Field(default_factory=list)
    calendar_name: Optional[str] = None

    # Parse statistics
    total_blocks: int = 0
    skipped_blocks: int = 0
    recurring_event_count: int = 0

    warnings: list[str] = Field(default_factory=list)

    @property
    def event_count(self) -> int:
        """Number of events that survived decoding."""
        return len(self.events)
