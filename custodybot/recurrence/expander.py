"""Recurrence expansion for custody schedules and recurring calendar events."""

import logging
from datetime import date, datetime, time, timedelta
from itertools import islice
from typing import TYPE_CHECKING, Any, Optional

from dateutil.rrule import DAILY, MONTHLY, SU, WEEKLY, rrule

from ..ics.models import NormalizedCalendarEvent
from ..models import WEEKDAY_INDEX, ScheduleOccurrence, SchedulePattern, day_index
from ..utils.helpers import UTC, comparable_instant, parse_time_of_day, today_local

if TYPE_CHECKING:
    from ..models import CustodySchedule

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_WEEKS = 12
DEFAULT_OCCURRENCE_LIMIT = 12
DEFAULT_MAX_OCCURRENCES = 1000

_FREQUENCY_MAP = {
    "DAILY": DAILY,
    "WEEKLY": WEEKLY,
    "MONTHLY": MONTHLY,
}


class RecurrenceExpansionError(Exception):
    """Raised when a schedule or event cannot be expanded into occurrences."""


class RecurrenceExpander:
    """Turn custody schedules and recurring events into concrete occurrences.

    Both paths are built on ``dateutil.rrule``. Schedule expansion is bounded
    by a horizon in weeks, event expansion by an occurrence limit, and both
    by the global ``max_occurrences`` cap.
    """

    def __init__(self, settings: Optional[Any] = None) -> None:
        """Initialize expander.

        Args:
            settings: Optional settings providing ``schedule_horizon_weeks``,
                ``import_occurrence_limit`` and ``max_occurrences``
        """
        self.settings = settings
        self.horizon_weeks = getattr(settings, "schedule_horizon_weeks", DEFAULT_HORIZON_WEEKS)
        self.occurrence_limit = getattr(
            settings, "import_occurrence_limit", DEFAULT_OCCURRENCE_LIMIT
        )
        self.max_occurrences = getattr(settings, "max_occurrences", DEFAULT_MAX_OCCURRENCES)

    def expand_template(
        self,
        schedule: "CustodySchedule",
        horizon_weeks: Optional[int] = None,
        today: Optional[date] = None,
    ) -> list[ScheduleOccurrence]:
        """Expand a custody schedule into dated occurrences.

        One-time schedules always yield their single occurrence on
        ``start_date``, even when it lies in the past. Repeating schedules
        yield every selected weekday from ``max(start_date, today)`` up to,
        but excluding, ``start_date + horizon_weeks`` weeks, and never past
        ``end_date``. Biweekly schedules keep only weeks at an even offset
        from the Sunday-based week containing ``start_date``.

        Args:
            schedule: Schedule to expand
            horizon_weeks: Look-ahead from ``start_date`` (defaults to settings)
            today: Reference date (defaults to the local date)

        Returns:
            Occurrences in ascending order

        Raises:
            RecurrenceExpansionError: If the schedule's times cannot be parsed
        """
        if horizon_weeks is None:
            horizon_weeks = self.horizon_weeks
        if today is None:
            today = today_local()

        try:
            start_clock = parse_time_of_day(schedule.start_time)
            end_clock = parse_time_of_day(schedule.end_time)
        except ValueError as e:
            raise RecurrenceExpansionError(
                f"Cannot expand schedule '{schedule.name}': {e}"
            ) from e

        if schedule.pattern == SchedulePattern.ONCE.value:
            return [self._occurrence(schedule.start_date, start_clock, end_clock)]

        weekdays = sorted({day_index(day) for day in schedule.days_of_week})
        if not weekdays:
            logger.debug(f"Schedule {schedule.id} has no weekdays selected, nothing to expand")
            return []

        window_start = max(schedule.start_date, today)
        window_end = schedule.start_date + timedelta(weeks=horizon_weeks) - timedelta(days=1)
        if schedule.end_date is not None:
            window_end = min(window_end, schedule.end_date)

        if window_end < window_start:
            return []

        interval = 2 if schedule.pattern == SchedulePattern.BIWEEKLY.value else 1

        # dtstart stays on start_date so biweekly parity is anchored to its week
        rule = rrule(
            WEEKLY,
            dtstart=datetime.combine(schedule.start_date, time.min),
            interval=interval,
            wkst=SU,
            byweekday=weekdays,
            until=datetime.combine(window_end, time.min),
        )

        occurrences = []
        for occurrence in rule.xafter(datetime.combine(window_start, time.min), inc=True):
            if len(occurrences) >= self.max_occurrences:
                logger.warning(
                    f"Limiting schedule {schedule.id} expansion to "
                    f"{self.max_occurrences} occurrences"
                )
                break
            occurrences.append(self._occurrence(occurrence.date(), start_clock, end_clock))

        logger.debug(
            f"Expanded schedule {schedule.id} ({schedule.pattern}) into {len(occurrences)} "
            f"occurrences between {window_start} and {window_end}"
        )
        return occurrences

    def _occurrence(self, day: date, start_clock: time, end_clock: time) -> ScheduleOccurrence:
        return ScheduleOccurrence(
            date=day,
            start=datetime.combine(day, start_clock),
            end=datetime.combine(day, end_clock),
        )

    def expand_recurring_event(
        self,
        event: NormalizedCalendarEvent,
        occurrence_limit: Optional[int] = None,
    ) -> list[NormalizedCalendarEvent]:
        """Expand a recurring event into single-occurrence copies.

        Each copy keeps the master's title, description, location and
        external_id (so external_id is shared by all copies), starts at one
        generated instant and keeps the master's duration. Copies are marked
        non-recurring.

        Args:
            event: Recurring event to expand
            occurrence_limit: Maximum number of copies (defaults to settings)

        Returns:
            Occurrence copies in ascending order

        Raises:
            RecurrenceExpansionError: If the event is not recurring or its rule
                cannot be expanded
        """
        if not event.is_recurring or event.recurrence_rule is None:
            raise RecurrenceExpansionError(f"Event '{event.title}' is not recurring")

        if occurrence_limit is None:
            occurrence_limit = self.occurrence_limit
        limit = min(occurrence_limit, self.max_occurrences)
        if limit <= 0:
            return []

        rule = event.recurrence_rule
        frequency = _FREQUENCY_MAP.get(str(rule.frequency))
        if frequency is None:
            raise RecurrenceExpansionError(f"Unsupported frequency: {rule.frequency}")

        rule_kwargs: dict[str, Any] = {
            "dtstart": event.start_time,
            "interval": rule.interval,
        }
        if rule.by_day:
            rule_kwargs["byweekday"] = rule.weekday_indexes
        if rule.count is not None:
            rule_kwargs["count"] = rule.count
        if rule.until is not None:
            rule_kwargs["until"] = self._align_until(rule.until, event.start_time)
        if rule.week_start is not None:
            rule_kwargs["wkst"] = WEEKDAY_INDEX[rule.week_start]

        try:
            starts = list(islice(rrule(frequency, **rule_kwargs), limit))
        except (ValueError, TypeError) as e:
            raise RecurrenceExpansionError(f"Failed to expand '{event.title}': {e}") from e

        duration = event.duration
        copies = [
            event.model_copy(
                update={
                    "start_time": start,
                    "end_time": start + duration if duration is not None else None,
                    "is_recurring": False,
                    "recurrence_rule": None,
                }
            )
            for start in starts
        ]

        logger.debug(f"Expanded recurring event '{event.title}' into {len(copies)} occurrences")
        return copies

    def _align_until(self, until: datetime, start: datetime) -> datetime:
        """Give UNTIL the same timezone awareness as DTSTART, as dateutil requires."""
        if start.tzinfo is not None and until.tzinfo is None:
            return until.replace(tzinfo=UTC)
        if start.tzinfo is None and until.tzinfo is not None:
            return comparable_instant(until)
        return until
