"""Deterministic health report rules.

Status graph (forward only, except the explicit undo):

  pending ──▶ investigating ──▶ confirmed ──▶ resolved
     │             │                            ▲
     │             └──────────▶ resolved ───────┘
     └──▶ confirmed / resolved / false_alarm

  resolved ──undo_resolution──▶ pending   (the one supported backward move)
  false_alarm is terminal.

Every action appends one entry to the report's action log.
"""

from __future__ import annotations

from datetime import datetime

from services.coordination.src.coordination.domains.report.priority import derive_priority
from services.coordination.src.coordination.domains.report.schemas import (
    HealthReport,
    ReportActionEntry,
)
from services.coordination.src.coordination.schemas.enums import (
    ReportSeverity,
    ReportStatus,
    ReportUrgency,
)

__all__ = [
    "FORWARD_MOVES",
    "append_action",
    "can_move",
    "derive_priority",
    "escalated_inputs",
    "move",
    "undo_resolution",
]

FORWARD_MOVES: dict[ReportStatus, frozenset[ReportStatus]] = {
    ReportStatus.PENDING: frozenset({
        ReportStatus.INVESTIGATING,
        ReportStatus.CONFIRMED,
        ReportStatus.RESOLVED,
        ReportStatus.FALSE_ALARM,
    }),
    ReportStatus.INVESTIGATING: frozenset({
        ReportStatus.CONFIRMED,
        ReportStatus.RESOLVED,
        ReportStatus.FALSE_ALARM,
    }),
    ReportStatus.CONFIRMED: frozenset({ReportStatus.RESOLVED}),
    ReportStatus.RESOLVED: frozenset(),
    ReportStatus.FALSE_ALARM: frozenset(),
}

_SEVERITY_ORDER = (
    ReportSeverity.LOW, ReportSeverity.MEDIUM, ReportSeverity.HIGH, ReportSeverity.CRITICAL,
)


def can_move(current: ReportStatus, target: ReportStatus) -> bool:
    return target in FORWARD_MOVES[current]


def append_action(
    report: HealthReport,
    action: str,
    taken_by: str,
    now: datetime,
    notes: str = "",
    **changes,
) -> HealthReport:
    """Apply ``changes`` and append one action log entry."""
    entry = ReportActionEntry(action=action, taken_by=taken_by, taken_at=now, notes=notes)
    return report.evolve(actions=(*report.actions, entry), updated_at=now, **changes)


def move(
    report: HealthReport,
    target: ReportStatus,
    taken_by: str,
    now: datetime,
    notes: str = "",
) -> HealthReport:
    """Move to ``target``; resolving stamps the resolution time and actor."""
    changes: dict = {"status": target}
    if target == ReportStatus.RESOLVED:
        changes.update(resolved_at=now, resolved_by=taken_by, resolution_notes=notes or None)
    return append_action(
        report,
        f"Status changed to {target.value}",
        taken_by,
        now,
        notes=notes or f"Status updated to {target.value}",
        **changes,
    )


def undo_resolution(report: HealthReport, taken_by: str, now: datetime, notes: str = "") -> HealthReport:
    return append_action(
        report,
        "Resolution undone",
        taken_by,
        now,
        notes=notes,
        status=ReportStatus.PENDING,
        resolved_at=None,
        resolved_by=None,
        resolution_notes=None,
    )


def escalated_inputs(
    severity: ReportSeverity, urgency: ReportUrgency,
) -> tuple[ReportSeverity, ReportUrgency]:
    """Inputs that make the derived priority critical without lowering either.

    Severity is raised to at least high and urgency to emergency
    (3 + 3 = 6, the critical threshold).
    """
    floor = _SEVERITY_ORDER.index(ReportSeverity.HIGH)
    current = _SEVERITY_ORDER.index(ReportSeverity(severity))
    return _SEVERITY_ORDER[max(floor, current)], ReportUrgency.EMERGENCY
