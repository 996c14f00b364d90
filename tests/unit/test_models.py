"""Unit tests for shared domain models."""

from datetime import date, datetime

import pytest
from pydantic import ValidationError

from custodybot.models import (
    DAY_TO_ICS,
    ICS_TO_DAY,
    CustodySchedule,
    DayOfWeek,
    ScheduleOccurrence,
    VisitSession,
    day_index,
    day_name,
    sort_days,
)

pytestmark = pytest.mark.unit


class TestDayHelpers:
    """Tests for weekday name helpers."""

    def test_day_name(self):
        """Enum members and mixed-case strings normalize to lower case."""
        assert day_name(DayOfWeek.MONDAY) == "monday"
        assert day_name(" Friday ") == "friday"

    def test_day_index_uses_python_numbering(self):
        """Monday is 0 and Sunday is 6."""
        assert day_index("monday") == 0
        assert day_index(DayOfWeek.SUNDAY) == 6

    def test_day_index_unknown_raises(self):
        """Unknown names raise KeyError."""
        with pytest.raises(KeyError):
            day_index("funday")

    def test_sort_days(self):
        """Days come back unique, known and Sunday first."""
        assert sort_days(["friday", "Sunday", "monday", "friday", "funday"]) == [
            "sunday",
            "monday",
            "friday",
        ]

    def test_ics_mappings_are_inverse(self):
        """Day names and ICS codes map both ways."""
        assert DAY_TO_ICS["wednesday"] == "WE"
        assert all(ICS_TO_DAY[code] == day for day, code in DAY_TO_ICS.items())


class TestCustodySchedule:
    """Tests for the CustodySchedule model."""

    def test_defaults(self):
        """Only id, name and start date are required."""
        schedule = CustodySchedule(id="s1", name="Weekends", start_date="2025-01-04")

        assert schedule.pattern == "weekly"
        assert schedule.visit_type == "physical_care"
        assert schedule.start_date == date(2025, 1, 4)
        assert schedule.start_time == "09:00"
        assert schedule.end_time == "17:00"
        assert schedule.active is True
        assert schedule.is_recurring is True

    def test_once_is_not_recurring(self):
        """One-time schedules do not repeat."""
        schedule = CustodySchedule(id="s1", name="Trip", pattern="once", start_date="2025-01-04")

        assert schedule.is_recurring is False

    def test_defaults_stored_as_plain_values(self):
        """Defaulted enum fields hold plain strings like explicit ones."""
        schedule = CustodySchedule(id="s1", name="Weekends", start_date="2025-01-04")

        assert type(schedule.pattern) is str
        assert type(schedule.visit_type) is str

    def test_enum_values_stored(self):
        """Enum inputs are stored as their values."""
        schedule = CustodySchedule(
            id="s1", name="x", start_date="2025-01-04", days_of_week=[DayOfWeek.MONDAY]
        )

        assert schedule.days_of_week == ["monday"]

    @pytest.mark.parametrize(
        "field,value",
        [("pattern", "yearly"), ("days_of_week", ["funday"]), ("visit_type", "sleepover")],
    )
    def test_unknown_enum_values_rejected(self, field, value):
        """Values outside the enums fail validation."""
        with pytest.raises(ValidationError):
            CustodySchedule(id="s1", name="x", start_date="2025-01-04", **{field: value})

    def test_serialization(self):
        """Dates and datetimes serialize to ISO strings."""
        schedule = CustodySchedule(
            id="s1",
            name="x",
            start_date=date(2025, 1, 4),
            created_at=datetime(2025, 1, 1, 8, 0),
        )

        data = schedule.model_dump()

        assert data["start_date"] == "2025-01-04"
        assert data["end_date"] is None
        assert data["created_at"] == "2025-01-01T08:00:00"


class TestVisitSession:
    """Tests for the VisitSession model."""

    def test_source_required(self):
        """Every visit records where it came from."""
        with pytest.raises(ValidationError):
            VisitSession(child_id="c1", start_time=datetime(2025, 1, 6, 9))

    def test_default_type_is_plain_value(self):
        """A defaulted visit type is stored as its string value."""
        visit = VisitSession(
            child_id="c1", start_time=datetime(2025, 1, 6, 9), source="manual_start_stop"
        )

        assert visit.type == "physical_care"
        assert type(visit.type) is str

    def test_dump(self):
        """Visits serialize with ISO times and enum values."""
        visit = VisitSession(
            child_id="c1",
            start_time=datetime(2025, 1, 6, 9),
            source="generated_from_schedule",
            schedule_id="s1",
        )

        data = visit.model_dump()

        assert data["start_time"] == "2025-01-06T09:00:00"
        assert data["type"] == "physical_care"
        assert data["source"] == "generated_from_schedule"
        assert data["schedule_id"] == "s1"


def test_schedule_occurrence_is_frozen():
    """Occurrences are immutable values."""
    occurrence = ScheduleOccurrence(
        date=date(2025, 1, 6), start=datetime(2025, 1, 6, 9), end=datetime(2025, 1, 6, 17)
    )

    with pytest.raises(AttributeError):
        occurrence.start = datetime(2025, 1, 6, 10)
