"""Community health report lifecycle module."""

from datetime import datetime
from typing import Any

from pydantic import ValidationError

from services.coordination.src.coordination.domains.base import (
    FanOut,
    LifecycleModule,
    TransitionOutcome,
    validation_reason,
)
from services.coordination.src.coordination.domains.report import rules
from services.coordination.src.coordination.domains.report.schemas import HealthReport
from services.coordination.src.coordination.domains.schemas import Actor, BaseEntity
from services.coordination.src.coordination.schemas.enums import (
    RESPONDER_ROLES,
    EntityKind,
    EventType,
    ReportAction,
    ReportStatus,
)


class ReportModule(LifecycleModule):
    """Health reports raised by any authenticated reporter.

    New reports are broadcast to every live connection. Later changes
    notify the reporter, and assignments notify the assignee.
    """

    @property
    def kind(self) -> EntityKind:
        return EntityKind.REPORT

    def get_entity_schema(self) -> type[BaseEntity]:
        return HealthReport

    def actions(self) -> tuple[str, ...]:
        return tuple(a.value for a in ReportAction)

    def created(self, entity: BaseEntity, actor: Actor) -> list[FanOut]:
        report = self._expect(entity)
        label = report.title or report.type.value
        message = f"New health report: {label}"
        return [FanOut(
            target_identity=None,
            event_type=EventType.REPORT_CREATED.value,
            payload=self.payload(report, "create", actor, message),
            message=message,
        )]

    def apply(
        self,
        entity: BaseEntity,
        action: str,
        actor: Actor,
        now: datetime,
        params: dict[str, Any],
    ) -> TransitionOutcome:
        report = self._expect(entity)
        try:
            act = ReportAction(action)
        except ValueError:
            raise self.reject(report, action, "unknown action") from None

        is_responder = actor.has_role(RESPONDER_ROLES)
        if act == ReportAction.RECLASSIFY:
            if not (is_responder or actor.id == report.reporter_ref):
                raise self.reject(report, act.value, "only responders or the reporter may reclassify")
        elif not is_responder:
            raise self.reject(report, act.value, "only responders may do this")

        try:
            updated, message = self._apply(report, act, actor, now, params)
        except ValidationError as exc:
            raise self.reject(report, act.value, validation_reason(exc)) from None

        if act == ReportAction.ASSIGN:
            effects = self.notify(
                params.get("assignee"), EventType.REPORT_ASSIGNED.value,
                updated, act.value, actor, f"{actor.name} assigned you a health report",
            )
            effects += self.notify(
                updated.reporter_ref, EventType.REPORT_UPDATED.value,
                updated, act.value, actor, message,
            )
        else:
            effects = self.notify(
                updated.reporter_ref, EventType.REPORT_UPDATED.value,
                updated, act.value, actor, message,
            )
        return TransitionOutcome(entity=updated, effects=effects)

    # -- internals -----------------------------------------------------------

    def _apply(
        self,
        report: HealthReport,
        act: ReportAction,
        actor: Actor,
        now: datetime,
        params: dict[str, Any],
    ) -> tuple[HealthReport, str]:
        notes = params.get("notes") or ""

        if act in (ReportAction.UPDATE_STATUS, ReportAction.RESOLVE):
            raw = params.get("status") if act == ReportAction.UPDATE_STATUS else ReportStatus.RESOLVED
            try:
                target = ReportStatus(raw)
            except ValueError:
                raise self.reject(report, act.value, f"unknown status '{raw}'") from None
            if not rules.can_move(report.status, target):
                raise self.reject(
                    report, act.value, f"cannot move from {report.status.value} to {target.value}",
                )
            updated = rules.move(report, target, actor.id, now, notes)
            return updated, f"{actor.name} marked your report as {target.value}"

        if act == ReportAction.UNDO_RESOLUTION:
            if report.status != ReportStatus.RESOLVED:
                raise self.reject(report, act.value, "only a resolved report can be reopened")
            updated = rules.undo_resolution(report, actor.id, now, notes)
            return updated, f"{actor.name} reopened your report"

        if act == ReportAction.ESCALATE:
            if report.status == ReportStatus.FALSE_ALARM:
                raise self.reject(report, act.value, "report was closed as a false alarm")
            severity, urgency = rules.escalated_inputs(report.severity, report.urgency)
            updated = rules.append_action(
                report, "Escalated", actor.id, now,
                notes=params.get("reason") or notes,
                severity=severity,
                urgency=urgency,
            )
            return updated, f"{actor.name} escalated your report to {updated.priority.value} priority"

        if act == ReportAction.RECLASSIFY:
            changes = {
                key: params[key] for key in ("severity", "urgency", "type")
                if params.get(key) is not None
            }
            if not changes:
                raise self.reject(report, act.value, "nothing to reclassify")
            updated = rules.append_action(report, "Reclassified", actor.id, now, notes=notes, **changes)
            return updated, f"{actor.name} reclassified your report as {updated.priority.value} priority"

        assignee = params.get("assignee")
        if not assignee:
            raise self.reject(report, act.value, "assignee is required")
        assigned = report.assigned_to if assignee in report.assigned_to else (*report.assigned_to, assignee)
        updated = rules.append_action(
            report, f"Assigned to {assignee}", actor.id, now, notes=notes, assigned_to=assigned,
        )
        return updated, f"{actor.name} assigned your report to a responder"

    def _expect(self, entity: BaseEntity) -> HealthReport:
        if not isinstance(entity, HealthReport):
            raise TypeError(f"Expected HealthReport, got {type(entity)}")
        return entity


report_module = ReportModule()
