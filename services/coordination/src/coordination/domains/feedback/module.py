"""Patient feedback lifecycle module."""

from datetime import datetime
from typing import Any

from pydantic import ValidationError

from services.coordination.src.coordination.domains.base import (
    FanOut,
    LifecycleModule,
    TransitionOutcome,
    validation_reason,
)
from services.coordination.src.coordination.domains.feedback import rules
from services.coordination.src.coordination.domains.feedback.schemas import Feedback
from services.coordination.src.coordination.domains.schemas import Actor, BaseEntity
from services.coordination.src.coordination.schemas.enums import (
    ActorRole,
    EntityKind,
    EventType,
    FeedbackAction,
    FeedbackStatus,
)


class FeedbackModule(LifecycleModule):
    """Feedback left by a patient, optionally about one provider.

    The provider (or an admin) responds and moves it forward; the patient
    may rerate until it is closed.
    """

    @property
    def kind(self) -> EntityKind:
        return EntityKind.FEEDBACK

    def get_entity_schema(self) -> type[BaseEntity]:
        return Feedback

    def actions(self) -> tuple[str, ...]:
        return tuple(a.value for a in FeedbackAction)

    def created(self, entity: BaseEntity, actor: Actor) -> list[FanOut]:
        feedback = self._expect(entity)
        author = "A patient" if feedback.is_anonymous else actor.name
        message = f"{author} left {feedback.priority.value} priority feedback"
        return self.notify(
            feedback.provider_ref, EventType.FEEDBACK_CREATED.value,
            feedback, "create", actor, message,
        )

    def apply(
        self,
        entity: BaseEntity,
        action: str,
        actor: Actor,
        now: datetime,
        params: dict[str, Any],
    ) -> TransitionOutcome:
        feedback = self._expect(entity)
        try:
            act = FeedbackAction(action)
        except ValueError:
            raise self.reject(feedback, action, "unknown action") from None

        is_admin = actor.role == ActorRole.ADMIN
        if act == FeedbackAction.RERATE:
            if actor.id != feedback.patient_ref:
                raise self.reject(feedback, act.value, "only the patient may rerate")
            if feedback.status == FeedbackStatus.CLOSED:
                raise self.reject(feedback, act.value, "feedback is closed")
        elif not (is_admin or (feedback.provider_ref and actor.id == feedback.provider_ref)):
            raise self.reject(feedback, act.value, "only the provider or an admin may do this")

        try:
            updated = self._apply(feedback, act, actor, now, params)
        except ValidationError as exc:
            raise self.reject(feedback, act.value, validation_reason(exc)) from None

        if act == FeedbackAction.RERATE:
            message = f"Feedback was rerated; priority is now {updated.priority.value}"
            effects = self.notify(
                updated.provider_ref, EventType.FEEDBACK_RERATED.value, updated, act.value, actor, message,
            )
        elif act == FeedbackAction.RESPOND:
            message = f"{actor.name} responded to your feedback"
            effects = self.notify(
                updated.patient_ref, EventType.FEEDBACK_RESPONDED.value, updated, act.value, actor, message,
            )
        else:
            message = f"{actor.name} marked your feedback as {updated.status.value}"
            effects = self.notify(
                updated.patient_ref, EventType.FEEDBACK_UPDATED.value, updated, act.value, actor, message,
            )
        return TransitionOutcome(entity=updated, effects=effects)

    def _apply(
        self,
        feedback: Feedback,
        act: FeedbackAction,
        actor: Actor,
        now: datetime,
        params: dict[str, Any],
    ) -> Feedback:
        if act == FeedbackAction.RESPOND:
            if not rules.can_respond(feedback):
                raise self.reject(feedback, act.value, "feedback has already moved past addressed")
            return rules.respond(feedback, params.get("content") or "", actor.id, now)

        if act == FeedbackAction.RERATE:
            rating = params.get("rating")
            if rating is None:
                raise self.reject(feedback, act.value, "rating is required")
            return rules.rerate(feedback, rating, now)

        raw = params.get("status")
        try:
            target = FeedbackStatus(raw)
        except ValueError:
            raise self.reject(feedback, act.value, f"unknown status '{raw}'") from None
        if not rules.is_forward(feedback.status, target):
            raise self.reject(
                feedback, act.value, f"cannot move from {feedback.status.value} to {target.value}",
            )
        return feedback.evolve(status=target, updated_at=now)

    def _expect(self, entity: BaseEntity) -> Feedback:
        if not isinstance(entity, Feedback):
            raise TypeError(f"Expected Feedback, got {type(entity)}")
        return entity


feedback_module = FeedbackModule()
