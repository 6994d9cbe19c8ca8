"""SQLAlchemy table definitions for the coordination service."""

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

metadata = MetaData()

# One row per entity; the validated entity snapshot lives in payload_json
coordination_entities = Table(
    "coordination_entities",
    metadata,
    Column("id", String, primary_key=True),
    Column("kind", String(32), nullable=False),
    Column("status", String(32), nullable=False),
    Column("payload_json", Text, nullable=False),
    Column("version", Integer, nullable=False, server_default="1"),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Index("ix_entities_kind_status", "kind", "status"),
    Index("ix_entities_updated", "updated_at"),
)

coordination_audit_events = Table(
    "coordination_audit_events",
    metadata,
    Column("id", String, primary_key=True),
    Column("entity_id", String, nullable=False),
    Column("kind", String(32), nullable=False),
    Column("trace_id", String, nullable=False),
    Column("step", String(64), nullable=False),
    Column("actor_id", String, nullable=True),
    Column("payload_json", Text, nullable=False, server_default="{}"),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Index("ix_audit_entity", "entity_id"),
    Index("ix_audit_trace", "trace_id"),
    Index("ix_audit_created", "created_at"),
)
