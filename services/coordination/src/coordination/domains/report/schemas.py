"""Pydantic schemas for community health reports."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, computed_field

from services.coordination.src.coordination.core.clock import utcnow
from services.coordination.src.coordination.domains.report.priority import derive_priority
from services.coordination.src.coordination.domains.schemas import BaseEntity, UtcDatetime
from services.coordination.src.coordination.schemas.enums import (
    EntityKind,
    Priority,
    ReportSeverity,
    ReportStatus,
    ReportType,
    ReportUrgency,
)


class ReportActionEntry(BaseModel):
    """One audit entry on a report. Immutable once appended."""

    model_config = ConfigDict(frozen=True)

    action: str
    taken_by: str
    taken_at: UtcDatetime = Field(default_factory=utcnow)
    notes: str = ""


class HealthReport(BaseEntity):
    """A community health report (outbreak, hazard, crisis...).

    ``priority`` is derived from severity and urgency on every access and
    is never stored as an input of its own.
    """

    kind: ClassVar[EntityKind] = EntityKind.REPORT

    reporter_ref: str
    title: str = Field("", max_length=200)
    description: str = ""
    type: ReportType = ReportType.OTHER
    severity: ReportSeverity
    urgency: ReportUrgency = ReportUrgency.ROUTINE
    status: ReportStatus = ReportStatus.PENDING

    actions: tuple[ReportActionEntry, ...] = ()
    assigned_to: tuple[str, ...] = ()
    is_anonymous: bool = False

    resolved_at: UtcDatetime | None = None
    resolved_by: str | None = None
    resolution_notes: str | None = None

    @computed_field
    @property
    def priority(self) -> Priority:
        return derive_priority(self.severity, self.urgency)
