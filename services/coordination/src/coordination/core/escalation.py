"""Escalation sweeper: applies time-driven rules to stored entities.

Runs in two ways, both one step per evaluation:
  - refresh(): opportunistically, when an entity is read
  - run_periodic(): a background task sweeping every sweepable status

Each change is saved, written to the audit ledger, then handed to the
dispatcher. A failure on one entity is logged and the pass continues.
"""

import asyncio
import logging
import uuid
from datetime import datetime

from services.coordination.src.coordination.core.status import StatusEngine
from services.coordination.src.coordination.domains.base import TransitionOutcome
from services.coordination.src.coordination.domains.registry import LifecycleRegistry
from services.coordination.src.coordination.domains.schemas import SYSTEM_ACTOR, BaseEntity

logger = logging.getLogger(__name__)


class EscalationSweeper:
    """Evaluate escalation and auto-completion rules against the entity store."""

    def __init__(self, store, engine: StatusEngine | None = None, dispatcher=None, audit=None):
        self._store = store
        self._engine = engine or StatusEngine()
        self._dispatcher = dispatcher
        self._audit = audit

    def sweep(self, entity: BaseEntity, now: datetime | None = None) -> TransitionOutcome | None:
        """Evaluate one entity; persist and announce the result if it changed."""
        outcome = self._engine.sweep(entity, now)
        if outcome is None:
            return None

        saved = self._store.save(outcome.entity)
        outcome.entity = saved

        logger.info("entity_swept", extra={
            "kind": saved.kind.value,
            "entity_id": saved.id,
            "from_status": entity.status_value,
            "to_status": saved.status_value,
        })

        if self._audit is not None:
            self._audit.append(
                entity_id=saved.id,
                kind=saved.kind.value,
                trace_id=str(uuid.uuid4()),
                step="SWEEP",
                actor_id=SYSTEM_ACTOR.id,
                payload_json=saved.snapshot(),
            )
        if self._dispatcher is not None:
            self._dispatcher.deliver(outcome.effects)
        return outcome

    def refresh(self, kind: str, entity_id: str, now: datetime | None = None) -> BaseEntity:
        """Load an entity, sweeping it once on the way.

        Raises:
            EntityNotFound: If the entity does not exist
        """
        entity = self._store.load(kind, entity_id)
        outcome = self.sweep(entity, now)
        return outcome.entity if outcome else entity

    def sweep_all(self, now: datetime | None = None, limit: int = 500) -> int:
        """One pass over every sweepable entity. Returns how many changed."""
        now = now or self._engine.now()
        changed = 0
        for module in LifecycleRegistry.get_all():
            statuses = module.sweepable_statuses()
            if not statuses:
                continue
            for entity in self._store.list_by_status(module.kind, statuses, limit):
                try:
                    if self.sweep(entity, now) is not None:
                        changed += 1
                except Exception:
                    logger.exception("sweep_entity_failed", extra={
                        "kind": module.kind.value, "entity_id": entity.id,
                    })

        logger.info("sweep_pass_completed", extra={"changed": changed})
        return changed

    async def run_periodic(self, interval_seconds: float) -> None:
        """Sweep forever at a fixed cadence until cancelled."""
        logger.info("sweeper_started", extra={"interval_seconds": interval_seconds})
        while True:
            try:
                await asyncio.to_thread(self.sweep_all)
            except Exception:
                logger.exception("sweep_pass_failed")
            await asyncio.sleep(interval_seconds)
