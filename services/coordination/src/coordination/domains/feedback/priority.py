"""Feedback priority derivation.

  average rating <= 2 → high, <= 3 → medium, else low
  medication or care_quality feedback averaging <= 2 → critical

The average covers the overall rating plus whichever component ratings
are present.
"""

from collections.abc import Iterable

from services.coordination.src.coordination.schemas.enums import FeedbackType, Priority

CRITICAL_TYPES = frozenset({FeedbackType.MEDICATION, FeedbackType.CARE_QUALITY})


def average_rating(ratings: Iterable[int | None]) -> float:
    present = [r for r in ratings if r is not None]
    if not present:
        raise ValueError("at least one rating is required")
    return sum(present) / len(present)


def derive_priority(feedback_type: FeedbackType, average: float) -> Priority:
    if average <= 2:
        if FeedbackType(feedback_type) in CRITICAL_TYPES:
            return Priority.CRITICAL
        return Priority.HIGH
    if average <= 3:
        return Priority.MEDIUM
    return Priority.LOW
