"""Base interface for lifecycle modules.

Every entity family (consultation, referral, report, feedback) implements
this interface. The status engine and the escalation sweeper depend only on
LifecycleModule, never on hardcoded entity checks.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from services.coordination.src.coordination.core.errors import InvalidTransition
from services.coordination.src.coordination.domains.schemas import Actor, BaseEntity
from services.coordination.src.coordination.schemas.enums import EntityKind


@dataclass
class FanOut:
    """Instruction to deliver one event.

    ``target_identity`` of None means broadcast to every live connection.
    """

    target_identity: str | None
    event_type: str
    payload: dict[str, Any]
    message: str


@dataclass
class TransitionOutcome:
    """New entity state plus the notifications it should trigger."""

    entity: BaseEntity
    effects: list[FanOut] = field(default_factory=list)
    changed: bool = True


class LifecycleModule(ABC):
    """Abstract base class for entity lifecycle modules."""

    @property
    @abstractmethod
    def kind(self) -> EntityKind:
        """Entity family handled by this module."""
        ...

    @abstractmethod
    def get_entity_schema(self) -> type[BaseEntity]:
        """Return the Pydantic schema for this entity family."""
        ...

    @abstractmethod
    def actions(self) -> tuple[str, ...]:
        """Action names accepted by ``apply``."""
        ...

    @abstractmethod
    def apply(
        self,
        entity: BaseEntity,
        action: str,
        actor: Actor,
        now: datetime,
        params: dict[str, Any],
    ) -> TransitionOutcome:
        """Validate and apply one action.

        Returns a new entity; the input is left untouched.

        Raises:
            InvalidTransition: If the action's preconditions are not met
        """
        ...

    def created(self, entity: BaseEntity, actor: Actor) -> list[FanOut]:
        """Notifications emitted when an entity is first created.

        Override in subclass if creation notifies someone.
        """
        return []

    def sweep(self, entity: BaseEntity, now: datetime) -> TransitionOutcome | None:
        """Apply time-driven rules. None when nothing is due.

        Override in subclass if the entity escalates or auto-completes.
        """
        return None

    def sweepable_statuses(self) -> tuple[str, ...]:
        """Statuses the batch sweeper should load for this kind."""
        return ()

    # -- helpers shared by subclasses ---------------------------------------

    def reject(self, entity: BaseEntity, action: str, reason: str) -> InvalidTransition:
        return InvalidTransition(
            kind=self.kind.value,
            entity_id=entity.id,
            action=action,
            status=entity.status_value,
            reason=reason,
        )

    def payload(self, entity: BaseEntity, action: str, actor: Actor, message: str) -> dict[str, Any]:
        """Standard event payload: entity nested under its kind name."""
        return {
            self.kind.value: entity.snapshot(),
            "action": action,
            "actor": {"id": actor.id, "name": actor.name},
            "message": message,
        }

    def notify(
        self,
        target: str | None,
        event_type: str,
        entity: BaseEntity,
        action: str,
        actor: Actor,
        message: str,
    ) -> list[FanOut]:
        """Build a single fan-out, skipping missing targets and self-notification."""
        if not target or target == actor.id:
            return []
        return [FanOut(
            target_identity=target,
            event_type=event_type,
            payload=self.payload(entity, action, actor, message),
            message=message,
        )]


def validation_reason(exc: ValidationError) -> str:
    """First human-readable message of a pydantic validation error."""
    errors = exc.errors()
    return errors[0]["msg"] if errors else str(exc)
