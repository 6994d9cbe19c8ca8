"""Normalize raw notification frames into canonical records.

Event payloads come in several shapes: some nest the entity under a key
named after the event family (``consultation``, ``report``,
``campaign``...), others carry the entity fields at the top level. Each
family is one Variant with its own message rule, and ``normalize`` is
the only place ids and messages are chosen.

Record id precedence:
  1. nested entity ``id`` / ``_id``
  2. payload ``id`` / ``_id``
  3. ``{type}-{epoch milliseconds}`` (not stable across redelivery)

Message precedence:
  1. the frame's explicit message
  2. the variant's own message rule
  3. payload ``message``
  4. ``title`` / ``name`` / ``type`` of the nested entity, or of a flat payload
  5. ``{type} event received``
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from pydantic import BaseModel, Field

from services.coordination.src.coordination.core.clock import utcnow

MessageRule = Callable[[str, dict, dict | None], str | None]


class NotificationRecord(BaseModel):
    """Client-side notification. ``read`` stays False: reading removes the record."""

    id: str
    type: str
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    read: bool = False


@dataclass(frozen=True)
class Variant:
    family: str
    nested_key: str | None
    message_rule: MessageRule | None = None


def _first(source: dict | None, *keys: str) -> Any:
    if not source:
        return None
    for key in keys:
        value = source.get(key)
        if value not in (None, ""):
            return value
    return None


def _campaign_message(event_type: str, payload: dict, nested: dict | None) -> str | None:
    return f"New campaign: {_first(nested or payload, 'title', 'name') or 'Campaign'}"


def _report_message(event_type: str, payload: dict, nested: dict | None) -> str | None:
    if event_type != "report:created":
        return None
    return f"New health report: {_first(nested or payload, 'title', 'type') or 'Report'}"


def _consultation_message(event_type: str, payload: dict, nested: dict | None) -> str | None:
    if event_type == "consultation:requested":
        return _first(payload, "message") or "New consultation request"
    if event_type == "consultation:responded":
        return _first(payload, "message") or "Your consultation request was updated"
    return None


VARIANTS: dict[str, Variant] = {
    "consultation": Variant("consultation", "consultation", _consultation_message),
    "referral": Variant("referral", "referral"),
    "report": Variant("report", "report", _report_message),
    "feedback": Variant("feedback", "feedback"),
    "campaign": Variant("campaign", "campaign", _campaign_message),
}

GENERIC = Variant("generic", None)


def variant_for(event_type: str) -> Variant:
    return VARIANTS.get(event_type.split(":", 1)[0], GENERIC)


def fallback_id(event_type: str, received_at: datetime) -> str:
    return f"{event_type}-{int(received_at.timestamp() * 1000)}"


def normalize(
    event_type: str,
    payload: dict | None,
    explicit_message: str | None = None,
    received_at: datetime | None = None,
) -> NotificationRecord:
    received_at = received_at or utcnow()
    payload = payload if isinstance(payload, dict) else {}
    variant = variant_for(event_type)

    nested = payload.get(variant.nested_key) if variant.nested_key else None
    if not isinstance(nested, dict):
        nested = None

    record_id = (
        _first(nested, "id", "_id")
        or _first(payload, "id", "_id")
        or fallback_id(event_type, received_at)
    )

    message = (
        explicit_message
        or (variant.message_rule(event_type, payload, nested) if variant.message_rule else None)
        or _first(payload, "message")
        or _first(nested or payload, "title", "name", "type")
        or f"{event_type} event received"
    )

    return NotificationRecord(
        id=str(record_id),
        type=event_type,
        message=str(message),
        data=payload,
        created_at=received_at,
    )
