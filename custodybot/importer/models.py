"""Data models for the calendar import pipeline."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..ics.models import NormalizedCalendarEvent
from ..models import VisitSession, VisitType


class ClassificationResult(BaseModel):
    """Outcome of classifying one calendar event."""

    is_custody_related: bool = Field(default=False, description="Event concerns custody time")
    suggested_visit_type: Optional[VisitType] = Field(
        default=None, description="Suggested visit type (custody-related events only)"
    )

    model_config = ConfigDict(use_enum_values=True, frozen=True)

    @model_validator(mode="after")
    def validate_suggestion(self) -> "ClassificationResult":
        """Only custody-related events carry a visit type suggestion."""
        if self.suggested_visit_type is not None and not self.is_custody_related:
            raise ValueError("suggested_visit_type requires is_custody_related")
        return self


class ParsedCalendarEvent(NormalizedCalendarEvent):
    """Normalized event annotated by the custody classifier.

    Transient: consumed to build visit drafts and then discarded.
    """

    is_custody_related: bool = Field(default=False, description="Set by the classifier")
    suggested_visit_type: Optional[VisitType] = Field(
        default=None, description="Set only when custody related"
    )

    model_config = ConfigDict(use_enum_values=True)

    @classmethod
    def from_event(
        cls, event: NormalizedCalendarEvent, classification: ClassificationResult
    ) -> "ParsedCalendarEvent":
        """Combine a normalized event with its classification."""
        return cls(
            **{name: getattr(event, name) for name in NormalizedCalendarEvent.model_fields},
            is_custody_related=classification.is_custody_related,
            suggested_visit_type=classification.suggested_visit_type,
        )


class DeduplicationResult(BaseModel):
    """Candidates left after removing duplicates of existing visits."""

    to_insert: list[VisitSession] = Field(default_factory=list)
    skipped_count: int = Field(default=0, ge=0)

    @property
    def insert_count(self) -> int:
        """Number of visits to hand to the store."""
        return len(self.to_insert)


class ImportSummary(BaseModel):
    """Everything produced by one import run."""

    events: list[ParsedCalendarEvent] = Field(default_factory=list)
    visits: list[VisitSession] = Field(default_factory=list)
    to_insert: list[VisitSession] = Field(default_factory=list)
    skipped_count: int = 0

    @property
    def message(self) -> str:
        """User-facing summary line."""
        return f"Imported {len(self.to_insert)} visits ({self.skipped_count} duplicates skipped)"
