"""Custody schedule lifecycle, validation and visit generation."""

import logging
import uuid
from collections.abc import Callable, Iterable, Mapping
from datetime import date, datetime, time
from typing import Any, Optional, Union

from pydantic import BaseModel, ValidationError

from ..ics.encoder import ICSEncoder
from ..importer.dedup import deduplicate_visits
from ..importer.models import DeduplicationResult
from ..models import (
    DAY_TO_ICS,
    CustodySchedule,
    SchedulePattern,
    VisitSession,
    VisitSource,
    day_name,
    sort_days,
)
from ..recurrence.expander import RecurrenceExpander
from ..utils.helpers import enum_value, now_local, parse_iso_date, parse_time_of_day
from .exceptions import ScheduleError
from .store import InMemoryRecordStore, RecordStore

logger = logging.getLogger(__name__)

ScheduleData = Union[Mapping[str, Any], CustodySchedule]

# Fields the manager owns; caller-supplied values are ignored
_MANAGED_FIELDS = ("id", "created_at", "updated_at")


class CustodyScheduleManager:
    """Create, edit and materialize custody schedules.

    Schedules live in a ``RecordStore``; expansion into occurrences is
    delegated to ``RecurrenceExpander`` and ICS export to ``ICSEncoder``.
    Callers are expected to serialize writes to the store.

    Example:
        >>> manager = CustodyScheduleManager()
        >>> schedule = manager.create(
        ...     {"name": "Weekends", "days_of_week": ["saturday"], "start_date": "2025-01-04"}
        ... )
        >>> manager.toggle_active(schedule.id)
        False
    """

    def __init__(
        self,
        store: Optional[RecordStore] = None,
        settings: Optional[Any] = None,
        expander: Optional[RecurrenceExpander] = None,
        encoder: Optional[ICSEncoder] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize schedule manager.

        Args:
            store: Record store holding schedules (in-memory store if None)
            settings: Optional settings for default times and expansion limits
            expander: Recurrence expander to use
            encoder: ICS encoder to use
            clock: Source of timestamps for created_at/updated_at
        """
        self.store = store if store is not None else InMemoryRecordStore()
        self.settings = settings
        self.expander = expander or RecurrenceExpander(settings)
        self.encoder = encoder or ICSEncoder(settings)
        self._clock = clock or now_local

        self.default_start_time = getattr(settings, "default_start_time", "09:00")
        self.default_end_time = getattr(settings, "default_end_time", "17:00")

    # CRUD

    def create(self, data: ScheduleData) -> CustodySchedule:
        """Create and store a new schedule.

        Args:
            data: Schedule fields; ``id`` and timestamps are assigned here

        Returns:
            The stored schedule

        Raises:
            ScheduleError: If the data cannot form a schedule
        """
        record = self._as_mapping(data)
        for key in _MANAGED_FIELDS:
            record.pop(key, None)
        record.setdefault("start_time", self.default_start_time)
        record.setdefault("end_time", self.default_end_time)

        now = self._clock()
        try:
            schedule = CustodySchedule(
                id=str(uuid.uuid4()), created_at=now, updated_at=now, **record
            )
        except ValidationError as e:
            raise ScheduleError(
                "Invalid schedule data", details={"name": record.get("name"), "error": str(e)}
            ) from e

        self.store.insert(schedule)
        logger.info(f"Created custody schedule {schedule.id} ({schedule.name})")
        return schedule

    def update(self, schedule_id: str, data: ScheduleData) -> Optional[CustodySchedule]:
        """Merge fields into an existing schedule.

        Args:
            schedule_id: Schedule to update
            data: Fields to change; ``id`` and ``created_at`` cannot be changed

        Returns:
            The updated schedule, or None if no schedule has that id

        Raises:
            ScheduleError: If the merged data cannot form a schedule
        """
        existing = self.store.get(schedule_id)
        if existing is None:
            logger.debug(f"Schedule {schedule_id} not found, update skipped")
            return None

        changes = self._as_mapping(data)
        for key in _MANAGED_FIELDS:
            changes.pop(key, None)

        merged = {**self._as_mapping(existing), **changes, "updated_at": self._clock()}
        try:
            updated = CustodySchedule(**merged)
        except ValidationError as e:
            raise ScheduleError(
                "Invalid schedule update", details={"schedule_id": schedule_id, "error": str(e)}
            ) from e

        self.store.update(updated)
        logger.info(f"Updated custody schedule {schedule_id}")
        return updated

    def delete(self, schedule_id: str) -> bool:
        """Remove a schedule.

        Returns:
            True if a schedule was removed
        """
        removed = self.store.delete(schedule_id)
        if removed:
            logger.info(f"Deleted custody schedule {schedule_id}")
        else:
            logger.debug(f"Schedule {schedule_id} not found, delete skipped")
        return removed

    def toggle_active(self, schedule_id: str) -> Optional[bool]:
        """Flip a schedule's active flag.

        Returns:
            New active state (True/False) or None if schedule not found
        """
        existing = self.store.get(schedule_id)
        if existing is None:
            logger.debug(f"Schedule {schedule_id} not found for toggle")
            return None

        updated = existing.model_copy(
            update={"active": not existing.active, "updated_at": self._clock()}
        )
        self.store.update(updated)
        logger.info(f"Toggled custody schedule {schedule_id}: active={updated.active}")
        return updated.active

    def get(self, schedule_id: str) -> Optional[CustodySchedule]:
        """Look up a schedule by id."""
        return self.store.get(schedule_id)

    def list_schedules(self, active_only: bool = False) -> list[CustodySchedule]:
        """All stored schedules, optionally only the active ones."""
        schedules = self.store.get_all()
        if active_only:
            return [schedule for schedule in schedules if schedule.active]
        return schedules

    # Validation and display

    def validate(self, data: ScheduleData, require_children: bool = False) -> list[str]:
        """Validate schedule data and return list of validation errors.

        Args:
            data: Schedule or raw schedule fields
            require_children: Also require at least one child

        Returns:
            List of validation error messages (empty if valid)
        """
        errors: list[str] = []

        try:
            record = self._as_mapping(data)

            name = record.get("name")
            if not isinstance(name, str) or not name.strip():
                errors.append("Schedule name is required")

            if require_children and not record.get("child_ids"):
                errors.append("At least one child must be selected")

            pattern = record.get("pattern", SchedulePattern.WEEKLY)
            pattern_value = enum_value(pattern) if pattern else ""
            if not pattern_value:
                errors.append("Recurrence pattern is required")
            elif pattern_value not in {p.value for p in SchedulePattern}:
                errors.append(f"Unknown recurrence pattern '{pattern_value}'")

            start_date = self._check_date(record, "start_date", "Start date", errors, required=True)
            end_date = self._check_date(record, "end_date", "End date", errors)
            if start_date and end_date and end_date < start_date:
                errors.append("End date cannot be before start date")

            days = record.get("days_of_week") or []
            for day in days:
                if day_name(day) not in DAY_TO_ICS:
                    errors.append(f"Unknown day of week '{enum_value(day)}'")
            if pattern_value != SchedulePattern.ONCE.value and not days:
                errors.append("At least one day of week must be selected for recurring schedules")

            start_clock = self._check_time(
                record, "start_time", "Start time", self.default_start_time, errors
            )
            end_clock = self._check_time(
                record, "end_time", "End time", self.default_end_time, errors
            )
            if start_clock and end_clock and end_clock <= start_clock:
                errors.append("End time must be after start time")

        except Exception as e:
            errors.append(f"Validation error: {e!s}")

        return errors

    def _check_date(
        self,
        record: Mapping[str, Any],
        key: str,
        label: str,
        errors: list[str],
        required: bool = False,
    ) -> Optional[date]:
        value = record.get(key)
        if value is None or value == "":
            if required:
                errors.append(f"{label} is required")
            return None
        try:
            return parse_iso_date(value)
        except ValueError:
            errors.append(f"{label} '{value}' is not a valid date")
            return None

    def _check_time(
        self,
        record: Mapping[str, Any],
        key: str,
        label: str,
        default: str,
        errors: list[str],
    ) -> Optional[time]:
        value = record.get(key) or default
        try:
            return parse_time_of_day(value)
        except ValueError:
            errors.append(f"{label} '{value}' must use HH:MM format")
            return None

    def describe(self, schedule: CustodySchedule) -> str:
        """Human-readable summary, e.g. ``Weekly: every Monday, Friday, 09:00-17:00``."""
        pattern = enum_value(schedule.pattern)
        time_range = f"{schedule.start_time}-{schedule.end_time}"
        days = ", ".join(day.capitalize() for day in sort_days(schedule.days_of_week))

        if pattern == SchedulePattern.ONCE.value:
            start = schedule.start_date
            detail = f"one-time visit on {start:%b} {start.day}, {start.year}"
        elif not days:
            detail = "no days specified"
        elif pattern == SchedulePattern.WEEKLY.value:
            detail = f"every {days}"
        elif pattern == SchedulePattern.BIWEEKLY.value:
            detail = f"every other week on {days}"
        else:
            detail = f"on {days}"

        return f"{pattern.capitalize()}: {detail}, {time_range}"

    # Materialization

    def generate_visits(
        self,
        schedule: CustodySchedule,
        horizon_weeks: Optional[int] = None,
        today: Optional[date] = None,
        include_inactive: bool = False,
    ) -> list[VisitSession]:
        """Materialize visit drafts from a schedule.

        One draft is produced per occurrence and child, so two children and
        four occurrences yield eight drafts.

        Args:
            schedule: Schedule to materialize
            horizon_weeks: Look-ahead in weeks (defaults to settings)
            today: Reference date (defaults to the local date)
            include_inactive: Generate even if the schedule is inactive

        Returns:
            Visit drafts ordered by occurrence, then by child
        """
        if not schedule.active and not include_inactive:
            logger.debug(f"Schedule {schedule.id} is inactive, no visits generated")
            return []

        occurrences = self.expander.expand_template(schedule, horizon_weeks, today)
        visits = [
            VisitSession(
                child_id=child_id,
                start_time=occurrence.start,
                end_time=occurrence.end,
                type=schedule.visit_type,
                source=VisitSource.GENERATED_FROM_SCHEDULE,
                notes=f"Auto-generated from schedule: {schedule.name}",
                schedule_id=schedule.id,
            )
            for occurrence in occurrences
            for child_id in schedule.child_ids
        ]

        logger.debug(f"Generated {len(visits)} visits from schedule: {schedule.name}")
        return visits

    def generate_visits_for_active_schedules(
        self,
        existing: Iterable[VisitSession] = (),
        horizon_weeks: Optional[int] = None,
        today: Optional[date] = None,
    ) -> DeduplicationResult:
        """Generate visits for every active schedule, skipping ones already stored.

        Args:
            existing: Visits already in the store
            horizon_weeks: Look-ahead in weeks (defaults to settings)
            today: Reference date (defaults to the local date)

        Returns:
            Visits to insert and the number of duplicates skipped
        """
        schedules = self.list_schedules(active_only=True)
        logger.info(f"Found {len(schedules)} active custody schedules")

        candidates: list[VisitSession] = []
        for schedule in schedules:
            candidates.extend(self.generate_visits(schedule, horizon_weeks, today))

        return deduplicate_visits(candidates, existing)

    def export_ics(self, schedule: CustodySchedule) -> str:
        """Serialize a schedule to ICS text."""
        return self.encoder.encode(schedule)

    def export_filename(self, schedule: CustodySchedule) -> str:
        """Download filename for a schedule export."""
        return self.encoder.export_filename(schedule)

    def _as_mapping(self, data: ScheduleData) -> dict[str, Any]:
        if isinstance(data, BaseModel):
            return {name: getattr(data, name) for name in type(data).model_fields}
        return dict(data)
