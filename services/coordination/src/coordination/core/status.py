"""Status engine: the single entry point for entity state changes.

Resolves the lifecycle module for an entity and applies one action.
Nothing here touches storage or transports; callers persist the returned
entity and hand the returned fan-outs to the dispatcher.
"""

import logging
from datetime import datetime

from services.coordination.src.coordination.core.clock import Clock, utcnow
from services.coordination.src.coordination.core.errors import InvalidTransition
from services.coordination.src.coordination.domains.base import TransitionOutcome
from services.coordination.src.coordination.domains.registry import LifecycleRegistry
from services.coordination.src.coordination.domains.schemas import Actor, BaseEntity

logger = logging.getLogger(__name__)


class StatusEngine:
    """Apply actions and time-driven rules through registered lifecycle modules."""

    def __init__(self, clock: Clock = utcnow):
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    def transition(
        self,
        entity: BaseEntity,
        action: str,
        actor: Actor,
        now: datetime | None = None,
        **params,
    ) -> TransitionOutcome:
        """Apply ``action`` on behalf of ``actor``.

        Returns the new entity plus the fan-outs it triggers. The input
        entity is never modified.

        Raises:
            InvalidTransition: If the action is unknown or its
                preconditions do not hold
        """
        module = LifecycleRegistry.get(entity.kind)
        try:
            if action not in module.actions():
                raise module.reject(entity, action, "unknown action")
            outcome = module.apply(entity, action, actor, now or self._clock(), params)
        except InvalidTransition as exc:
            logger.info("transition_rejected", extra={
                "kind": exc.kind,
                "entity_id": exc.entity_id,
                "action": exc.action,
                "status": exc.status,
                "actor_id": actor.id,
                "reason": exc.reason,
            })
            raise

        logger.info("transition_applied", extra={
            "kind": entity.kind.value,
            "entity_id": entity.id,
            "action": action,
            "from_status": entity.status_value,
            "to_status": outcome.entity.status_value,
            "actor_id": actor.id,
            "fan_outs": len(outcome.effects),
        })
        return outcome

    def create(self, entity: BaseEntity, actor: Actor) -> TransitionOutcome:
        """Accept a freshly built entity and compute its creation fan-outs."""
        module = LifecycleRegistry.get(entity.kind)
        effects = module.created(entity, actor)
        logger.info("entity_created", extra={
            "kind": entity.kind.value,
            "entity_id": entity.id,
            "status": entity.status_value,
            "actor_id": actor.id,
        })
        return TransitionOutcome(entity=entity, effects=effects)

    def sweep(self, entity: BaseEntity, now: datetime | None = None) -> TransitionOutcome | None:
        """Evaluate time-driven rules once. None when nothing is due."""
        module = LifecycleRegistry.get(entity.kind)
        return module.sweep(entity, now or self._clock())
