"""Domain models shared by the schedule manager and the calendar import pipeline."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class Weekday(str, Enum):
    """iCalendar weekday codes used in BYDAY."""

    SUNDAY = "SU"
    MONDAY = "MO"
    TUESDAY = "TU"
    WEDNESDAY = "WE"
    THURSDAY = "TH"
    FRIDAY = "FR"
    SATURDAY = "SA"


# Python's date.weekday() numbering (Monday == 0), which dateutil also uses
WEEKDAY_INDEX: dict[str, int] = {
    "MO": 0,
    "TU": 1,
    "WE": 2,
    "TH": 3,
    "FR": 4,
    "SA": 5,
    "SU": 6,
}


class VisitType(str, Enum):
    """Kind of time spent with a child."""

    PHYSICAL_CARE = "physical_care"
    OVERNIGHT = "overnight"
    VIRTUAL_CALL = "virtual_call"
    SCHOOL_TRANSPORT_ONLY = "school_transport_only"


class VisitSource(str, Enum):
    """How a visit session came into existence."""

    MANUAL_START_STOP = "manual_start_stop"
    AUTO_FROM_TRIP = "auto_from_trip"
    IMPORTED_FROM_CALENDAR = "imported_from_calendar"
    AUTO_DETECTED = "auto_detected"
    GENERATED_FROM_SCHEDULE = "generated_from_schedule"


class SchedulePattern(str, Enum):
    """Recurrence pattern of a custody schedule."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    CUSTOM = "custom"
    ONCE = "once"


class DayOfWeek(str, Enum):
    """Day names as stored on custody schedules."""

    SUNDAY = "sunday"
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"


DAY_TO_ICS: dict[str, str] = {
    DayOfWeek.SUNDAY.value: Weekday.SUNDAY.value,
    DayOfWeek.MONDAY.value: Weekday.MONDAY.value,
    DayOfWeek.TUESDAY.value: Weekday.TUESDAY.value,
    DayOfWeek.WEDNESDAY.value: Weekday.WEDNESDAY.value,
    DayOfWeek.THURSDAY.value: Weekday.THURSDAY.value,
    DayOfWeek.FRIDAY.value: Weekday.FRIDAY.value,
    DayOfWeek.SATURDAY.value: Weekday.SATURDAY.value,
}

ICS_TO_DAY: dict[str, str] = {code: day for day, code in DAY_TO_ICS.items()}


def day_name(day: object) -> str:
    """Lower-case day name of a DayOfWeek member or plain string."""
    return (day.value if isinstance(day, Enum) else str(day)).strip().lower()


def day_index(day: object) -> int:
    """Python weekday number (Monday == 0) for a day name such as ``"friday"``."""
    return WEEKDAY_INDEX[DAY_TO_ICS[day_name(day)]]


def sort_days(days: Iterable[object]) -> list[str]:
    """Unique known day names in Sunday-first order."""
    names = {day_name(day) for day in days}
    return [name for name in DAY_TO_ICS if name in names]


class CustodySchedule(BaseModel):
    """User-authored recurring custody template.

    Invariants (weekday selection, time ordering, date ordering) are checked by
    ``CustodyScheduleManager.validate`` rather than on construction, so drafts
    with problems can still be held and reported on.
    """

    id: str = Field(..., description="Schedule identifier")
    name: str = Field(..., description="User label")
    pattern: SchedulePattern = Field(
        default=SchedulePattern.WEEKLY, description="Recurrence pattern"
    )
    child_ids: list[str] = Field(default_factory=list, description="Children this schedule covers")
    visit_type: VisitType = Field(default=VisitType.PHYSICAL_CARE, description="Visit type")
    days_of_week: list[DayOfWeek] = Field(
        default_factory=list, description="Selected weekdays (ignored for once)"
    )

    start_date: date = Field(..., description="First date occurrences may be generated")
    end_date: Optional[date] = Field(default=None, description="Last date (inclusive)")
    start_time: str = Field(default="09:00", description="Local start time HH:MM")
    end_time: str = Field(default="17:00", description="Local end time HH:MM")

    active: bool = Field(default=True, description="Included in generation")
    notes: Optional[str] = Field(default=None, description="Free-form notes")

    created_at: Optional[datetime] = Field(default=None, description="Creation time")
    updated_at: Optional[datetime] = Field(default=None, description="Last modification time")

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    @property
    def is_recurring(self) -> bool:
        """Whether the pattern repeats."""
        return self.pattern != SchedulePattern.ONCE.value

    @field_serializer("start_date", "end_date", when_used="unless-none")
    def serialize_date(self, d: date) -> str:
        """Serialize dates as ISO strings."""
        return d.isoformat()

    @field_serializer("created_at", "updated_at", when_used="unless-none")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime fields to ISO format."""
        return dt.isoformat()


class VisitSession(BaseModel):
    """Draft visit record handed to the external store."""

    child_id: str = Field(..., description="Child identifier")
    start_time: datetime = Field(..., description="Visit start")
    end_time: Optional[datetime] = Field(default=None, description="Visit end")
    type: VisitType = Field(default=VisitType.PHYSICAL_CARE, description="Visit type")
    source: VisitSource = Field(..., description="Origin of this record")
    notes: Optional[str] = Field(default=None, description="Notes")
    location_tag: Optional[str] = Field(default=None, description="Location label")
    schedule_id: Optional[str] = Field(default=None, description="Originating schedule")

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    @field_serializer("start_time", "end_time", when_used="unless-none")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime fields to ISO format."""
        return dt.isoformat()


@dataclass(frozen=True)
class ScheduleOccurrence:
    """One concrete dated instance of a schedule."""

    date: date
    start: datetime
    end: datetime
