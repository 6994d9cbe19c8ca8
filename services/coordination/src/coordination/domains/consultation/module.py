"""Consultation lifecycle module."""

from datetime import datetime
from typing import Any

from pydantic import ValidationError

from services.coordination.src.coordination.domains.base import (
    FanOut,
    LifecycleModule,
    TransitionOutcome,
    validation_reason,
)
from services.coordination.src.coordination.domains.consultation import rules
from services.coordination.src.coordination.domains.consultation.schemas import Consultation
from services.coordination.src.coordination.domains.schemas import SYSTEM_ACTOR, Actor, BaseEntity
from services.coordination.src.coordination.schemas.enums import (
    ConsultationAction,
    ConsultationStatus,
    EntityKind,
    EventType,
)

# Actions only the consultation's own provider may take
_PROVIDER_ONLY = frozenset({
    ConsultationAction.RESPOND_ACCEPT,
    ConsultationAction.RESPOND_DENY,
    ConsultationAction.START,
    ConsultationAction.MARK_COMPLETED,
})

_EVENTS = {
    ConsultationAction.RESPOND_ACCEPT: EventType.CONSULTATION_RESPONDED,
    ConsultationAction.RESPOND_DENY: EventType.CONSULTATION_RESPONDED,
    ConsultationAction.START: EventType.CONSULTATION_STARTED,
    ConsultationAction.MARK_COMPLETED: EventType.CONSULTATION_COMPLETED,
    ConsultationAction.CANCEL: EventType.CONSULTATION_CANCELLED,
}

_VERBS = {
    ConsultationAction.RESPOND_ACCEPT: "accepted your consultation request",
    ConsultationAction.RESPOND_DENY: "declined your consultation request",
    ConsultationAction.START: "started your consultation",
    ConsultationAction.MARK_COMPLETED: "marked your consultation as completed",
    ConsultationAction.CANCEL: "cancelled the consultation",
}


class ConsultationModule(LifecycleModule):
    """Patient-requested consultations answered by a single provider.

    Every successful action notifies exactly one counterpart: provider
    actions notify the patient and patient actions notify the provider.
    """

    @property
    def kind(self) -> EntityKind:
        return EntityKind.CONSULTATION

    def get_entity_schema(self) -> type[BaseEntity]:
        return Consultation

    def actions(self) -> tuple[str, ...]:
        return tuple(a.value for a in ConsultationAction)

    def sweepable_statuses(self) -> tuple[str, ...]:
        return (ConsultationStatus.SCHEDULED.value,)

    def created(self, entity: BaseEntity, actor: Actor) -> list[FanOut]:
        consultation = self._expect(entity)
        message = f"{actor.name} requested a {consultation.channel_type.value} consultation"
        return self.notify(
            consultation.provider_ref, EventType.CONSULTATION_REQUESTED.value,
            consultation, "request", actor, message,
        )

    def apply(
        self,
        entity: BaseEntity,
        action: str,
        actor: Actor,
        now: datetime,
        params: dict[str, Any],
    ) -> TransitionOutcome:
        consultation = self._expect(entity)
        try:
            act = ConsultationAction(action)
        except ValueError:
            raise self.reject(consultation, action, "unknown action") from None

        if act in _PROVIDER_ONLY and actor.id != consultation.provider_ref:
            raise self.reject(consultation, act.value, "only the consultation's provider may do this")
        if act == ConsultationAction.CANCEL and actor.id not in (
            consultation.patient_ref, consultation.provider_ref,
        ):
            raise self.reject(consultation, act.value, "only the patient or provider may cancel")
        if not rules.is_allowed(consultation.status, act):
            raise self.reject(consultation, act.value, "not allowed from the current status")

        changes: dict[str, Any] = {"status": rules.next_status(act), "updated_at": now}
        if act in (ConsultationAction.RESPOND_ACCEPT, ConsultationAction.RESPOND_DENY):
            changes["responded_at"] = now
            if act == ConsultationAction.RESPOND_ACCEPT:
                for key in ("scheduled_start", "scheduled_end"):
                    if params.get(key) is not None:
                        changes[key] = params[key]
        elif act == ConsultationAction.MARK_COMPLETED:
            changes["completed_at"] = now
        elif act == ConsultationAction.CANCEL:
            changes["cancelled_at"] = now
            changes["cancelled_by"] = actor.id
            changes["cancellation_reason"] = params.get("reason")

        try:
            updated = consultation.evolve(**changes)
        except ValidationError as exc:
            raise self.reject(consultation, act.value, validation_reason(exc)) from None

        counterpart = (
            updated.patient_ref if actor.id == updated.provider_ref else updated.provider_ref
        )
        message = f"{actor.name} {_VERBS[act]}"
        return TransitionOutcome(
            entity=updated,
            effects=self.notify(counterpart, _EVENTS[act].value, updated, act.value, actor, message),
        )

    def sweep(self, entity: BaseEntity, now: datetime) -> TransitionOutcome | None:
        consultation = self._expect(entity)
        if not rules.is_due_for_completion(consultation, now):
            return None

        updated = rules.auto_complete(consultation, now)
        return TransitionOutcome(
            entity=updated,
            effects=self.notify(
                updated.patient_ref,
                EventType.CONSULTATION_COMPLETED.value,
                updated,
                ConsultationAction.MARK_COMPLETED.value,
                SYSTEM_ACTOR,
                "Your consultation was completed automatically after its scheduled end",
            ),
        )

    def _expect(self, entity: BaseEntity) -> Consultation:
        if not isinstance(entity, Consultation):
            raise TypeError(f"Expected Consultation, got {type(entity)}")
        return entity


consultation_module = ConsultationModule()
