"""Keyword classification of calendar events as custody time."""

import logging
import re
from collections.abc import Iterable
from datetime import time, timedelta
from typing import Optional

from ..ics.models import NormalizedCalendarEvent
from ..models import VisitType
from .models import ClassificationResult

logger = logging.getLogger(__name__)

OVERNIGHT_KEYWORDS = ["overnight", "sleepover", "stay over", "stays over", "spend the night"]

VIRTUAL_KEYWORDS = [
    "call",
    "video call",
    "phone",
    "facetime",
    "zoom",
    "skype",
    "video chat",
    "virtual",
]

TRANSPORT_KEYWORDS = [
    "pickup",
    "pick-up",
    "pick up",
    "dropoff",
    "drop-off",
    "drop off",
    "school run",
    "school bus",
    "carpool",
]

CUSTODY_KEYWORDS = [
    "custody",
    "visitation",
    "parenting time",
    "parenting",
    "co-parent",
    "coparent",
    "exchange",
    "handoff",
    "hand-off",
    "school",
    "kids",
    "children",
    *TRANSPORT_KEYWORDS,
    *OVERNIGHT_KEYWORDS,
]


def _keyword_pattern(keywords: Iterable[str]) -> re.Pattern:
    """Compile a case-insensitive whole-word alternation; spaces match any whitespace run."""
    # Longest first so multi-word phrases win over their prefixes
    alternatives = sorted(
        {keyword.strip().lower() for keyword in keywords if keyword.strip()}, key=len, reverse=True
    )
    body = "|".join(re.escape(keyword).replace(r"\ ", r"\s+") for keyword in alternatives)
    return re.compile(rf"\b(?:{body})\b", re.IGNORECASE)


class CustodyClassifier:
    """Decide whether an event is custody time and suggest a visit type.

    Pure and deterministic: the result depends only on the event's title,
    description and, for transport, whether it spans midnight.
    """

    def __init__(self, extra_keywords: Optional[Iterable[str]] = None) -> None:
        """Initialize classifier.

        Args:
            extra_keywords: Additional words or phrases that mark an event as custody time
        """
        self.custody_pattern = _keyword_pattern([*CUSTODY_KEYWORDS, *(extra_keywords or [])])
        self.overnight_pattern = _keyword_pattern(OVERNIGHT_KEYWORDS)
        self.virtual_pattern = _keyword_pattern(VIRTUAL_KEYWORDS)
        self.transport_pattern = _keyword_pattern(TRANSPORT_KEYWORDS)

    def classify(self, event: NormalizedCalendarEvent) -> ClassificationResult:
        """Classify an event.

        Args:
            event: Event to classify

        Returns:
            Classification, with a visit type suggestion when custody related
        """
        text = self._event_text(event)

        if not self.custody_pattern.search(text):
            return ClassificationResult(is_custody_related=False)

        return ClassificationResult(
            is_custody_related=True,
            suggested_visit_type=self.suggest_visit_type(event, text),
        )

    def suggest_visit_type(
        self, event: NormalizedCalendarEvent, text: Optional[str] = None
    ) -> VisitType:
        """Suggest a visit type for a custody-related event."""
        if text is None:
            text = self._event_text(event)

        if self.overnight_pattern.search(text):
            return VisitType.OVERNIGHT
        if self.virtual_pattern.search(text):
            return VisitType.VIRTUAL_CALL
        if self.transport_pattern.search(text) and not self._spans_midnight(event):
            return VisitType.SCHOOL_TRANSPORT_ONLY
        return VisitType.PHYSICAL_CARE

    def _event_text(self, event: NormalizedCalendarEvent) -> str:
        return f"{event.title or ''}\n{event.description or ''}"

    def _spans_midnight(self, event: NormalizedCalendarEvent) -> bool:
        start, end = event.start_time, event.end_time
        if end is None:
            return False
        # An end exactly at the following midnight still belongs to the start day
        if end.time() == time.min and end.date() == start.date() + timedelta(days=1):
            return False
        return end.date() != start.date()


_default_classifier: Optional[CustodyClassifier] = None


def classify(event: NormalizedCalendarEvent) -> ClassificationResult:
    """Classify an event with the built-in vocabulary."""
    global _default_classifier  # noqa: PLW0603
    if _default_classifier is None:
        _default_classifier = CustodyClassifier()
    return _default_classifier.classify(event)
