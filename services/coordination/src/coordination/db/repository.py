"""Repository classes for coordination data access."""

import json
import uuid
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.engine import Engine

from services.coordination.src.coordination.core.errors import EntityNotFound
from services.coordination.src.coordination.core.redaction import redact_dict
from services.coordination.src.coordination.db.models import (
    coordination_audit_events,
    coordination_entities,
)
from services.coordination.src.coordination.domains.registry import LifecycleRegistry
from services.coordination.src.coordination.domains.schemas import BaseEntity
from services.coordination.src.coordination.schemas.enums import EntityKind


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class SqlEntityStore:
    """Entity store backed by one table of validated JSON snapshots.

    ``save`` is atomic per call. There is no concurrency control for
    concurrent edits of the same entity; the last write wins.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def load(self, kind: EntityKind | str, entity_id: str) -> BaseEntity:
        """Load and re-validate an entity.

        Raises:
            EntityNotFound: If no entity of that kind has the id
        """
        kind = EntityKind(kind)
        with self.engine.connect() as conn:
            result = conn.execute(
                select(coordination_entities).where(
                    coordination_entities.c.id == entity_id,
                    coordination_entities.c.kind == kind.value,
                )
            )
            row = result.mappings().first()
        if row is None:
            raise EntityNotFound(kind.value, entity_id)
        return self._to_entity(kind, row)

    def save(self, entity: BaseEntity) -> BaseEntity:
        payload = json.dumps(entity.snapshot())
        with self.engine.begin() as conn:
            existing = conn.execute(
                select(coordination_entities.c.version)
                .where(coordination_entities.c.id == entity.id)
            ).first()
            if existing is None:
                conn.execute(coordination_entities.insert().values(
                    id=entity.id,
                    kind=entity.kind.value,
                    status=entity.status_value,
                    payload_json=payload,
                    version=1,
                    created_at=entity.created_at,
                    updated_at=entity.updated_at,
                ))
            else:
                conn.execute(
                    update(coordination_entities)
                    .where(coordination_entities.c.id == entity.id)
                    .values(
                        status=entity.status_value,
                        payload_json=payload,
                        version=existing.version + 1,
                        updated_at=entity.updated_at,
                    )
                )
        return entity

    def list_by_status(
        self,
        kind: EntityKind | str,
        statuses: tuple[str, ...] | list[str],
        limit: int = 500,
    ) -> list[BaseEntity]:
        kind = EntityKind(kind)
        if not statuses:
            return []
        with self.engine.connect() as conn:
            result = conn.execute(
                select(coordination_entities)
                .where(
                    coordination_entities.c.kind == kind.value,
                    coordination_entities.c.status.in_(list(statuses)),
                )
                .order_by(coordination_entities.c.updated_at.asc())
                .limit(limit)
            )
            rows = list(result.mappings())
        return [self._to_entity(kind, row) for row in rows]

    def _to_entity(self, kind: EntityKind, row) -> BaseEntity:
        schema = LifecycleRegistry.get(kind).get_entity_schema()
        return schema.model_validate(json.loads(row["payload_json"]))


class AuditEventRepository:
    """Append-only audit event ledger. Payloads are redacted before storage."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def append(
        self,
        entity_id: str,
        kind: str,
        trace_id: str,
        step: str,
        actor_id: str | None = None,
        payload_json: dict | None = None,
    ) -> dict:
        row = {
            "id": _new_id(),
            "entity_id": entity_id,
            "kind": kind,
            "trace_id": trace_id,
            "step": step,
            "actor_id": actor_id,
            "payload_json": json.dumps(redact_dict(payload_json or {})),
            "created_at": _now(),
        }
        with self.engine.begin() as conn:
            conn.execute(coordination_audit_events.insert().values(row))
        return row

    def list_by_entity(self, entity_id: str) -> list[dict]:
        with self.engine.connect() as conn:
            result = conn.execute(
                select(coordination_audit_events)
                .where(coordination_audit_events.c.entity_id == entity_id)
                .order_by(coordination_audit_events.c.created_at.asc())
            )
            rows = []
            for row in result.mappings():
                d = dict(row)
                d["payload_json"] = json.loads(d["payload_json"])
                rows.append(d)
            return rows
