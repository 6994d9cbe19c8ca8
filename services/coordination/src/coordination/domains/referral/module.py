"""Referral lifecycle module."""

from datetime import datetime
from typing import Any

from pydantic import ValidationError

from services.coordination.src.coordination.domains.base import (
    FanOut,
    LifecycleModule,
    TransitionOutcome,
    validation_reason,
)
from services.coordination.src.coordination.domains.referral import rules
from services.coordination.src.coordination.domains.referral.schemas import Referral
from services.coordination.src.coordination.domains.schemas import SYSTEM_ACTOR, Actor, BaseEntity
from services.coordination.src.coordination.schemas.enums import (
    ActorRole,
    EntityKind,
    EventType,
    ReferralAction,
    ReferralStatus,
)

_VERBS = {
    ReferralAction.ACCEPT: "accepted the referral",
    ReferralAction.START: "started work on the referral",
    ReferralAction.COMPLETE: "completed the referral",
    ReferralAction.CANCEL: "cancelled the referral",
    ReferralAction.EXPIRE: "marked the referral as expired",
    ReferralAction.ADD_NOTE: "added a note to the referral",
}


class ReferralModule(LifecycleModule):
    """Provider-to-provider referrals.

    The referring provider creates the referral; the receiving provider
    accepts and works it. Notifications go to the other provider.
    """

    @property
    def kind(self) -> EntityKind:
        return EntityKind.REFERRAL

    def get_entity_schema(self) -> type[BaseEntity]:
        return Referral

    def actions(self) -> tuple[str, ...]:
        return tuple(a.value for a in ReferralAction)

    def sweepable_statuses(self) -> tuple[str, ...]:
        return (ReferralStatus.PENDING.value,)

    def created(self, entity: BaseEntity, actor: Actor) -> list[FanOut]:
        referral = self._expect(entity)
        label = referral.title or referral.specialty or "a patient"
        message = f"{actor.name} referred {label} to you"
        return self.notify(
            referral.referred_to_provider_ref, EventType.REFERRAL_CREATED.value,
            referral, "create", actor, message,
        )

    def apply(
        self,
        entity: BaseEntity,
        action: str,
        actor: Actor,
        now: datetime,
        params: dict[str, Any],
    ) -> TransitionOutcome:
        referral = self._expect(entity)
        try:
            act = ReferralAction(action)
        except ValueError:
            raise self.reject(referral, action, "unknown action") from None

        self._check_permission(referral, act, actor)
        if not rules.is_allowed(referral.status, act):
            raise self.reject(referral, act.value, "not allowed from the current status")

        try:
            updated = self._apply(referral, act, actor, now, params)
        except ValidationError as exc:
            raise self.reject(referral, act.value, validation_reason(exc)) from None

        if act == ReferralAction.ACCEPT:
            event = EventType.REFERRAL_ACCEPTED
        elif act == ReferralAction.ADD_NOTE:
            event = EventType.REFERRAL_NOTE_ADDED
        else:
            event = EventType.REFERRAL_UPDATED

        message = f"{actor.name} {_VERBS[act]}"
        return TransitionOutcome(
            entity=updated,
            effects=self.notify(
                self._counterpart(updated, actor), event.value, updated, act.value, actor, message,
            ),
        )

    def sweep(self, entity: BaseEntity, now: datetime) -> TransitionOutcome | None:
        referral = self._expect(entity)
        updated = rules.escalate(referral, now)
        if updated is referral:
            return None

        target = updated.referred_to_provider_ref or updated.referring_provider_ref
        label = updated.title or "A referral"
        message = (
            f"{label} is past its deadline; priority is now {updated.priority.value}, "
            f"urgency {updated.urgency.value}"
        )
        return TransitionOutcome(
            entity=updated,
            effects=self.notify(
                target, EventType.REFERRAL_ESCALATED.value, updated, "escalate", SYSTEM_ACTOR, message,
            ),
        )

    # -- internals -----------------------------------------------------------

    def _apply(
        self,
        referral: Referral,
        act: ReferralAction,
        actor: Actor,
        now: datetime,
        params: dict[str, Any],
    ) -> Referral:
        if act == ReferralAction.ADD_NOTE:
            return rules.append_note(referral, params.get("content") or "", actor.id, now)

        changes: dict[str, Any] = {"status": rules.next_status(act), "updated_at": now}
        if act == ReferralAction.ACCEPT:
            changes["accepted_at"] = now
            changes["accepted_by"] = actor.id
            if params.get("appointment_date") is not None:
                changes["appointment_date"] = params["appointment_date"]
        elif act == ReferralAction.COMPLETE:
            if params.get("outcome") is not None:
                changes["outcome"] = params["outcome"]
            if params.get("outcome_notes"):
                changes["outcome_notes"] = params["outcome_notes"]
        return referral.evolve(**changes)

    def _check_permission(self, referral: Referral, act: ReferralAction, actor: Actor) -> None:
        is_admin = actor.role == ActorRole.ADMIN
        receiving = actor.id in (referral.referred_to_provider_ref, referral.accepted_by)

        if act == ReferralAction.ACCEPT:
            allowed = is_admin or (
                referral.referred_to_provider_ref is not None
                and actor.id == referral.referred_to_provider_ref
            )
        elif act in (ReferralAction.START, ReferralAction.COMPLETE):
            allowed = is_admin or receiving
        elif act == ReferralAction.CANCEL:
            allowed = is_admin or actor.id == referral.referring_provider_ref
        elif act == ReferralAction.EXPIRE:
            allowed = (
                is_admin
                or actor.role == ActorRole.SYSTEM
                or actor.id == referral.referring_provider_ref
            )
        else:
            allowed = is_admin or referral.is_participant(actor.id)

        if not allowed:
            raise self.reject(referral, act.value, "actor is not permitted to do this")

    def _counterpart(self, referral: Referral, actor: Actor) -> str | None:
        if actor.id == referral.referring_provider_ref:
            return referral.referred_to_provider_ref or referral.accepted_by
        return referral.referring_provider_ref

    def _expect(self, entity: BaseEntity) -> Referral:
        if not isinstance(entity, Referral):
            raise TypeError(f"Expected Referral, got {type(entity)}")
        return entity


referral_module = ReferralModule()
