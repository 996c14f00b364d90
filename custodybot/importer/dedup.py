"""Duplicate detection between candidate and existing visit sessions."""

import logging
from collections.abc import Iterable
from datetime import datetime

from ..models import VisitSession
from .models import DeduplicationResult

logger = logging.getLogger(__name__)


def visit_key(visit: VisitSession) -> tuple[str, datetime]:
    """Identity used for duplicate detection.

    End time is not part of the key, so two visits for the same child starting
    at the same instant are duplicates even when they end differently.
    """
    return visit.child_id, visit.start_time


def deduplicate_visits(
    candidates: Iterable[VisitSession], existing: Iterable[VisitSession]
) -> DeduplicationResult:
    """Drop candidates that duplicate an existing visit.

    Candidates are only compared against ``existing``, so two candidates
    sharing a key are both inserted.

    Args:
        candidates: Visits about to be inserted, in insertion order
        existing: Visits already in the store

    Returns:
        Candidates to insert and the number skipped
    """
    existing_keys = {visit_key(visit) for visit in existing}

    result = DeduplicationResult()
    for candidate in candidates:
        if visit_key(candidate) in existing_keys:
            result.skipped_count += 1
            continue
        result.to_insert.append(candidate)

    if result.skipped_count:
        logger.debug(
            f"Deduplication: {result.insert_count} to insert, "
            f"{result.skipped_count} duplicates skipped"
        )
    return result
