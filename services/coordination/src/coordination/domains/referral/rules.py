"""Deterministic referral rules: status moves and deadline escalation.

Escalation applies only to a *pending* referral whose deadline has passed.
Each evaluation moves priority and urgency up by exactly one step:

  priority: routine → urgent → emergency
  urgency:  low → medium → high → critical

It is one step per call, never a jump to the ceiling. Repeated sweeps of
the same overdue referral keep stepping until both ladders are at their
top, after which the sweep is a no-op. Nothing here ever lowers either
value.
"""

from __future__ import annotations

from datetime import datetime

from services.coordination.src.coordination.domains.referral.schemas import Referral, ReferralNote
from services.coordination.src.coordination.schemas.enums import (
    ReferralAction,
    ReferralPriority,
    ReferralStatus,
    ReferralUrgency,
)

PRIORITY_LADDER: tuple[ReferralPriority, ...] = (
    ReferralPriority.ROUTINE,
    ReferralPriority.URGENT,
    ReferralPriority.EMERGENCY,
)

URGENCY_LADDER: tuple[ReferralUrgency, ...] = (
    ReferralUrgency.LOW,
    ReferralUrgency.MEDIUM,
    ReferralUrgency.HIGH,
    ReferralUrgency.CRITICAL,
)

TERMINAL_STATUSES = frozenset({
    ReferralStatus.COMPLETED,
    ReferralStatus.CANCELLED,
    ReferralStatus.EXPIRED,
})

_ALLOWED_FROM: dict[ReferralAction, frozenset[ReferralStatus]] = {
    ReferralAction.ACCEPT: frozenset({ReferralStatus.PENDING}),
    ReferralAction.START: frozenset({ReferralStatus.ACCEPTED}),
    ReferralAction.COMPLETE: frozenset({ReferralStatus.ACCEPTED, ReferralStatus.IN_PROGRESS}),
    ReferralAction.CANCEL: frozenset({
        ReferralStatus.PENDING, ReferralStatus.ACCEPTED, ReferralStatus.IN_PROGRESS,
    }),
    ReferralAction.EXPIRE: frozenset({ReferralStatus.PENDING}),
    ReferralAction.ADD_NOTE: frozenset(ReferralStatus),
}

_RESULT: dict[ReferralAction, ReferralStatus] = {
    ReferralAction.ACCEPT: ReferralStatus.ACCEPTED,
    ReferralAction.START: ReferralStatus.IN_PROGRESS,
    ReferralAction.COMPLETE: ReferralStatus.COMPLETED,
    ReferralAction.CANCEL: ReferralStatus.CANCELLED,
    ReferralAction.EXPIRE: ReferralStatus.EXPIRED,
}


def is_allowed(status: ReferralStatus, action: ReferralAction) -> bool:
    return status in _ALLOWED_FROM[action]


def next_status(action: ReferralAction) -> ReferralStatus | None:
    """Resulting status, or None for actions that do not move status."""
    return _RESULT.get(action)


# ---------------------------------------------------------------------------
# Escalation
# ---------------------------------------------------------------------------

def _step(ladder: tuple, current):
    index = ladder.index(current)
    return ladder[min(index + 1, len(ladder) - 1)]


def step_priority(priority: ReferralPriority) -> ReferralPriority:
    return _step(PRIORITY_LADDER, priority)


def step_urgency(urgency: ReferralUrgency) -> ReferralUrgency:
    return _step(URGENCY_LADDER, urgency)


def is_overdue(referral: Referral, now: datetime) -> bool:
    return (
        referral.status == ReferralStatus.PENDING
        and referral.deadline is not None
        and now > referral.deadline
    )


def at_ceiling(referral: Referral) -> bool:
    return (
        referral.priority == PRIORITY_LADDER[-1]
        and referral.urgency == URGENCY_LADDER[-1]
    )


def escalate(referral: Referral, now: datetime) -> Referral:
    """Apply one escalation step if the referral is overdue.

    Returns the same object when nothing changes (not overdue, or both
    values already at their ceiling).
    """
    if not is_overdue(referral, now) or at_ceiling(referral):
        return referral

    return referral.evolve(
        priority=step_priority(referral.priority),
        urgency=step_urgency(referral.urgency),
        escalation_count=referral.escalation_count + 1,
        last_escalated_at=now,
        updated_at=now,
    )


def append_note(referral: Referral, content: str, added_by: str, now: datetime) -> Referral:
    """Append to the note log. Existing entries are carried over untouched."""
    note = ReferralNote(content=content, added_by=added_by, added_at=now)
    return referral.evolve(notes=(*referral.notes, note), updated_at=now)
