"""Serialize custody schedules as iCalendar documents."""

import logging
import re
from datetime import date, datetime, time, timezone
from typing import TYPE_CHECKING, Any, Optional

from dateutil.rrule import SU, WEEKLY, rrule
from icalendar import Calendar, Event as ICalEvent

from ..models import DAY_TO_ICS, SchedulePattern, day_index, sort_days
from ..utils.helpers import enum_value, parse_time_of_day
from .exceptions import ICSEncodeError

if TYPE_CHECKING:
    from ..models import CustodySchedule

logger = logging.getLogger(__name__)

DEFAULT_PRODID = "-//CustodyBot//Custody Schedule//EN"
DEFAULT_UID_DOMAIN = "custodybot.local"


class ICSEncoder:
    """Build a single-VEVENT calendar describing a custody schedule.

    Escaping of TEXT values and 75-octet line folding are delegated to
    ``icalendar``.
    """

    def __init__(self, settings: Optional[Any] = None) -> None:
        """Initialize encoder.

        Args:
            settings: Optional settings providing ``ics_prodid``, ``ics_uid_domain``
                and ``calendar_timezone``
        """
        self.prodid = getattr(settings, "ics_prodid", None) or DEFAULT_PRODID
        self.uid_domain = getattr(settings, "ics_uid_domain", None) or DEFAULT_UID_DOMAIN
        self.calendar_timezone = getattr(settings, "calendar_timezone", None)

    def encode(self, schedule: "CustodySchedule", stamp: Optional[datetime] = None) -> str:
        """Serialize a schedule to ICS text.

        Args:
            schedule: Schedule to export
            stamp: DTSTAMP value (defaults to now)

        Returns:
            ICS document with CRLF line endings

        Raises:
            ICSEncodeError: If the schedule's dates or times cannot be serialized
        """
        try:
            start_clock = parse_time_of_day(schedule.start_time)
            end_clock = parse_time_of_day(schedule.end_time)
            first_date = self.first_occurrence_date(schedule)

            calendar = Calendar()
            calendar.add("prodid", self.prodid)
            calendar.add("version", "2.0")
            calendar.add("calscale", "GREGORIAN")
            calendar.add("method", "PUBLISH")
            calendar.add("x-wr-calname", schedule.name)
            if self.calendar_timezone:
                calendar.add("x-wr-timezone", self.calendar_timezone)

            event = ICalEvent()
            event.add("uid", f"{schedule.id}@{self.uid_domain}")
            event.add("dtstamp", stamp or datetime.now(timezone.utc))
            # Floating local times; the schedule has no timezone of its own
            event.add("dtstart", datetime.combine(first_date, start_clock))
            event.add("dtend", datetime.combine(first_date, end_clock))
            event.add("summary", schedule.name)
            event.add("description", self._description(schedule))
            event.add("status", "CONFIRMED")
            event.add("sequence", 0)

            recur = self.build_rrule(schedule)
            if recur:
                event.add("rrule", recur)

            calendar.add_component(event)
            content: str = calendar.to_ical().decode("utf-8")

        except (ValueError, TypeError, KeyError) as e:
            raise ICSEncodeError(
                f"Failed to encode schedule '{schedule.name}': {e}", component="VEVENT"
            ) from e

        logger.debug(f"Encoded schedule {schedule.id} ({len(content)} bytes)")
        return content

    def build_rrule(self, schedule: "CustodySchedule") -> Optional[dict[str, Any]]:
        """Derive RRULE components from the schedule pattern.

        ``WKST=SU`` is always written so consumers count biweekly parity on
        the same Sunday-based weeks that schedule expansion uses.

        Returns:
            Components for ``icalendar.vRecur``, or None for one-time schedules
        """
        if schedule.pattern == SchedulePattern.ONCE.value:
            return None

        recur: dict[str, Any] = {"FREQ": "WEEKLY"}
        interval = self._interval(schedule)
        if interval > 1:
            recur["INTERVAL"] = interval

        by_day = [DAY_TO_ICS[day] for day in sort_days(schedule.days_of_week)]
        if by_day:
            recur["BYDAY"] = by_day

        if schedule.end_date:
            recur["UNTIL"] = datetime.combine(schedule.end_date, time(23, 59, 59))

        recur["WKST"] = "SU"
        return recur

    def first_occurrence_date(self, schedule: "CustodySchedule") -> date:
        """First date the schedule's own recurrence produces from ``start_date``.

        For biweekly schedules this skips selected weekdays that fall in an
        off week, so DTSTART agrees with the generated visits.
        """
        if schedule.pattern == SchedulePattern.ONCE.value or not schedule.days_of_week:
            return schedule.start_date

        first = rrule(
            WEEKLY,
            dtstart=datetime.combine(schedule.start_date, time.min),
            interval=self._interval(schedule),
            wkst=SU,
            byweekday=sorted({day_index(day) for day in schedule.days_of_week}),
            count=1,
        )
        return first[0].date()

    def _interval(self, schedule: "CustodySchedule") -> int:
        return 2 if schedule.pattern == SchedulePattern.BIWEEKLY.value else 1

    def export_filename(self, schedule: "CustodySchedule") -> str:
        """Download filename for a schedule export."""
        return re.sub(r"\s+", "_", schedule.name.strip()) + ".ics"

    def _description(self, schedule: "CustodySchedule") -> str:
        description = f"Custody visit - {enum_value(schedule.visit_type)}"
        if schedule.notes:
            description += f"\n{schedule.notes}"
        return description
