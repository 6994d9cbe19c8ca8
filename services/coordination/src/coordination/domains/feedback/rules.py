"""Deterministic feedback rules.

Status only moves forward along

  pending < reviewed < addressed < resolved < closed

Responding always lands on ``addressed``; it is rejected once the
feedback has moved past that point. Rerating is allowed until closed.
"""

from __future__ import annotations

from datetime import datetime

from services.coordination.src.coordination.domains.feedback.schemas import (
    Feedback,
    FeedbackRating,
    FeedbackResponse,
)
from services.coordination.src.coordination.schemas.enums import FeedbackStatus

STATUS_ORDER: tuple[FeedbackStatus, ...] = (
    FeedbackStatus.PENDING,
    FeedbackStatus.REVIEWED,
    FeedbackStatus.ADDRESSED,
    FeedbackStatus.RESOLVED,
    FeedbackStatus.CLOSED,
)


def rank(status: FeedbackStatus) -> int:
    return STATUS_ORDER.index(FeedbackStatus(status))


def is_forward(current: FeedbackStatus, target: FeedbackStatus) -> bool:
    return rank(target) > rank(current)


def can_respond(feedback: Feedback) -> bool:
    return rank(feedback.status) <= rank(FeedbackStatus.ADDRESSED)


def respond(feedback: Feedback, content: str, responder: str, now: datetime) -> Feedback:
    response = FeedbackResponse(content=content, responded_by=responder, responded_at=now)
    return feedback.evolve(response=response, status=FeedbackStatus.ADDRESSED, updated_at=now)


def rerate(feedback: Feedback, rating: FeedbackRating | dict, now: datetime) -> Feedback:
    return feedback.evolve(rating=rating, updated_at=now)
