"""Calendar import pipeline: decode, expand, classify and deduplicate."""

import logging
from collections.abc import Iterable
from typing import Any, Optional, Union

from ..ics.models import NormalizedCalendarEvent
from ..ics.parser import ICSParser
from ..models import VisitSession, VisitSource, VisitType
from ..recurrence.expander import RecurrenceExpander, RecurrenceExpansionError
from ..utils.helpers import comparable_instant
from .classifier import CustodyClassifier
from .dedup import deduplicate_visits
from .models import DeduplicationResult, ImportSummary, ParsedCalendarEvent

logger = logging.getLogger(__name__)


class CalendarImportPipeline:
    """Turn raw ICS text into deduplicated visit drafts.

    Fetching the text and persisting the resulting visits are left to the
    caller; every step here works on in-memory data.
    """

    def __init__(
        self,
        settings: Optional[Any] = None,
        parser: Optional[ICSParser] = None,
        expander: Optional[RecurrenceExpander] = None,
        classifier: Optional[CustodyClassifier] = None,
    ) -> None:
        """Initialize pipeline.

        Args:
            settings: Optional settings (occurrence limits, extra custody keywords)
            parser: ICS decoder to use
            expander: Recurrence expander to use
            classifier: Custody classifier to use
        """
        self.settings = settings
        self.parser = parser or ICSParser()
        self.expander = expander or RecurrenceExpander(settings)
        self.classifier = classifier or CustodyClassifier(
            getattr(settings, "extra_custody_keywords", None)
        )

    def import_from_text(
        self, raw_text: Union[str, bytes, None], occurrence_limit: Optional[int] = None
    ) -> list[ParsedCalendarEvent]:
        """Decode ICS text and keep the custody-related events.

        Recurring events are replaced in place by their expanded occurrences.
        The result is sorted by start time; ties keep decode order.

        Args:
            raw_text: ICS document text
            occurrence_limit: Occurrences per recurring event (defaults to settings)

        Returns:
            Custody-related events in ascending start order
        """
        events = self.expand_events(self.parser.decode(raw_text), occurrence_limit)

        parsed: list[ParsedCalendarEvent] = []
        for event in events:
            classification = self.classifier.classify(event)
            if classification.is_custody_related:
                parsed.append(ParsedCalendarEvent.from_event(event, classification))

        # sorted() is stable, so equal starts keep decode order
        parsed = sorted(parsed, key=lambda e: comparable_instant(e.start_time))

        logger.info(
            f"Calendar import: {len(events)} events after expansion, {len(parsed)} custody related"
        )
        return parsed

    def expand_events(
        self, events: Iterable[NormalizedCalendarEvent], occurrence_limit: Optional[int] = None
    ) -> list[NormalizedCalendarEvent]:
        """Splice expanded occurrences of recurring events into the sequence."""
        expanded: list[NormalizedCalendarEvent] = []
        for event in events:
            if not event.is_recurring:
                expanded.append(event)
                continue

            try:
                expanded.extend(self.expander.expand_recurring_event(event, occurrence_limit))
            except RecurrenceExpansionError as e:
                logger.warning(f"Keeping '{event.title}' as a single event: {e}")
                expanded.append(
                    event.model_copy(update={"is_recurring": False, "recurrence_rule": None})
                )
        return expanded

    def convert_to_visits(
        self, events: Iterable[ParsedCalendarEvent], child_id: str
    ) -> list[VisitSession]:
        """Map imported events one-to-one onto visit drafts for a child."""
        return [
            VisitSession(
                child_id=child_id,
                start_time=event.start_time,
                end_time=event.end_time,
                type=event.suggested_visit_type or VisitType.PHYSICAL_CARE,
                source=VisitSource.IMPORTED_FROM_CALENDAR,
                notes=event.title,
                location_tag=event.location,
            )
            for event in events
        ]

    def deduplicate(
        self, candidates: Iterable[VisitSession], existing: Iterable[VisitSession]
    ) -> DeduplicationResult:
        """Remove candidates matching an existing visit on (child_id, start_time)."""
        return deduplicate_visits(candidates, existing)

    def run(
        self,
        raw_text: Union[str, bytes, None],
        child_id: str,
        existing: Iterable[VisitSession] = (),
        occurrence_limit: Optional[int] = None,
    ) -> ImportSummary:
        """Run the whole import for one child.

        Args:
            raw_text: ICS document text
            child_id: Child the imported visits are recorded against
            existing: Visits already stored, used for duplicate detection
            occurrence_limit: Occurrences per recurring event (defaults to settings)

        Returns:
            Summary with the classified events, drafts and insertable visits
        """
        events = self.import_from_text(raw_text, occurrence_limit)
        visits = self.convert_to_visits(events, child_id)
        dedup = self.deduplicate(visits, existing)

        summary = ImportSummary(
            events=events,
            visits=visits,
            to_insert=dedup.to_insert,
            skipped_count=dedup.skipped_count,
        )
        logger.info(summary.message)
        return summary
