"""Deterministic consultation status rules.

Status machine:
  requested ──accept──▶ scheduled ──start──▶ in_progress
      │                    │                    │
      └──deny──▶ denied    └──────complete──────┴──▶ completed

  cancel: any non-terminal status ──▶ cancelled
  Terminal: completed, cancelled, denied.

Auto-completion: a *scheduled* consultation whose scheduled_end has
passed is completed by the sweeper. Requested consultations are never
auto-completed, whatever their window says; an unanswered request must
not silently close.
"""

from __future__ import annotations

from datetime import datetime

from services.coordination.src.coordination.domains.consultation.schemas import Consultation
from services.coordination.src.coordination.schemas.enums import (
    ConsultationAction,
    ConsultationStatus,
)

TERMINAL_STATUSES = frozenset({
    ConsultationStatus.COMPLETED,
    ConsultationStatus.CANCELLED,
    ConsultationStatus.DENIED,
})

_ALLOWED_FROM: dict[ConsultationAction, frozenset[ConsultationStatus]] = {
    ConsultationAction.RESPOND_ACCEPT: frozenset({ConsultationStatus.REQUESTED}),
    ConsultationAction.RESPOND_DENY: frozenset({ConsultationStatus.REQUESTED}),
    ConsultationAction.START: frozenset({ConsultationStatus.SCHEDULED}),
    ConsultationAction.MARK_COMPLETED: frozenset({
        ConsultationStatus.SCHEDULED, ConsultationStatus.IN_PROGRESS,
    }),
    ConsultationAction.CANCEL: frozenset({
        ConsultationStatus.REQUESTED, ConsultationStatus.SCHEDULED, ConsultationStatus.IN_PROGRESS,
    }),
}

_RESULT: dict[ConsultationAction, ConsultationStatus] = {
    ConsultationAction.RESPOND_ACCEPT: ConsultationStatus.SCHEDULED,
    ConsultationAction.RESPOND_DENY: ConsultationStatus.DENIED,
    ConsultationAction.START: ConsultationStatus.IN_PROGRESS,
    ConsultationAction.MARK_COMPLETED: ConsultationStatus.COMPLETED,
    ConsultationAction.CANCEL: ConsultationStatus.CANCELLED,
}


def is_allowed(status: ConsultationStatus, action: ConsultationAction) -> bool:
    return status in _ALLOWED_FROM[action]


def next_status(action: ConsultationAction) -> ConsultationStatus:
    return _RESULT[action]


def is_due_for_completion(consultation: Consultation, now: datetime) -> bool:
    """True only for scheduled consultations whose window has closed."""
    return (
        consultation.status == ConsultationStatus.SCHEDULED
        and consultation.scheduled_end is not None
        and consultation.scheduled_end < now
    )


def auto_complete(consultation: Consultation, now: datetime) -> Consultation:
    """Complete an overdue scheduled consultation; otherwise return it unchanged."""
    if not is_due_for_completion(consultation, now):
        return consultation
    return consultation.evolve(
        status=ConsultationStatus.COMPLETED,
        completed_at=now,
        updated_at=now,
    )
