"""Fan-out dispatcher.

Turns a typed event into a NotificationEvent frame and offers it to
every live connection of the target identity (or to every connection for
a broadcast). Delivery is best-effort and at-most-once: a missing room is
a silent no-op, and a failure on one connection never reaches the other
connections or the caller.
"""

import logging
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, Field

from services.coordination.src.coordination.core.clock import utcnow
from services.coordination.src.coordination.core.errors import DispatchWriteFailure
from services.coordination.src.coordination.domains.base import FanOut
from services.coordination.src.coordination.domains.schemas import UtcDatetime, new_id
from services.coordination.src.coordination.realtime.connection import Connection
from services.coordination.src.coordination.realtime.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class NotificationEvent(BaseModel):
    """Transient event frame. Exists only for the duration of dispatch."""

    id: str = Field(default_factory=new_id)
    type: str
    recipient_identity: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    message: str = ""
    created_at: UtcDatetime = Field(default_factory=utcnow)

    def frame(self) -> dict:
        return self.model_dump(mode="json")


class Dispatcher:
    """Deliver events to identity rooms held by a ConnectionRegistry."""

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    def dispatch(
        self,
        target_identity: str | None,
        event_type: str,
        payload: dict[str, Any],
        message: str = "",
    ) -> int:
        """Offer an event to every connection of ``target_identity``.

        Returns how many connections accepted it; 0 when nobody is
        listening. Never raises.
        """
        if not target_identity:
            logger.debug("dispatch_skipped", extra={"event_type": event_type})
            return 0

        connections = self.registry.connections_for(target_identity)
        if not connections:
            logger.debug("dispatch_no_room", extra={
                "event_type": event_type, "recipient": target_identity,
            })
            return 0

        event = NotificationEvent(
            type=event_type,
            recipient_identity=target_identity,
            payload=payload,
            message=message,
        )
        return self._fan_out(event, connections)

    def broadcast(self, event_type: str, payload: dict[str, Any], message: str = "") -> int:
        """Offer an event to every live connection, anonymous ones included."""
        connections = self.registry.all_connections()
        if not connections:
            logger.debug("broadcast_no_connections", extra={"event_type": event_type})
            return 0
        event = NotificationEvent(type=event_type, payload=payload, message=message)
        return self._fan_out(event, connections)

    def deliver(self, effects: Iterable[FanOut]) -> int:
        """Apply fan-out instructions produced by a transition."""
        total = 0
        for effect in effects:
            try:
                if effect.target_identity is None:
                    total += self.broadcast(effect.event_type, effect.payload, effect.message)
                else:
                    total += self.dispatch(
                        effect.target_identity, effect.event_type, effect.payload, effect.message,
                    )
            except Exception:
                logger.exception("dispatch_failed", extra={"event_type": effect.event_type})
        return total

    def _fan_out(self, event: NotificationEvent, connections: list[Connection]) -> int:
        frame = event.frame()
        handed = 0
        for connection in connections:
            try:
                if connection.offer(frame):
                    handed += 1
            except Exception as exc:
                failure = DispatchWriteFailure(connection.identity, connection.id, exc)
                logger.warning("dispatch_write_failed", extra={
                    "event_type": event.type, "error": str(failure),
                })

        logger.info("event_dispatched", extra={
            "event_id": event.id,
            "event_type": event.type,
            "recipient": event.recipient_identity,
            "connections": len(connections),
            "accepted": handed,
        })
        return handed
