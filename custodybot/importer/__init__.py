"""Calendar import: custody classification, visit conversion and deduplication."""

from .classifier import CustodyClassifier, classify
from .dedup import deduplicate_visits
from .models import ClassificationResult, DeduplicationResult, ImportSummary, ParsedCalendarEvent
from .pipeline import CalendarImportPipeline

__all__ = [
    "CalendarImportPipeline",
    "ClassificationResult",
    "CustodyClassifier",
    "DeduplicationResult",
    "ImportSummary",
    "ParsedCalendarEvent",
    "classify",
    "deduplicate_visits",
]
