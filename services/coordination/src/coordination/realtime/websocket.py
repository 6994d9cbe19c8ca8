"""Websocket endpoint that accepts notification connections.

Identity is resolved once, from the ``token`` query parameter. An
unresolvable identity joins as anonymous unless fail-open is disabled,
in which case the socket is closed with a policy-violation code.

Client → server frames:
  {"type": "ping"}   answered with {"type": "pong"}
Server → client frames:
  {"type": "connected", "identity": ...}   once, after registration
  NotificationEvent frames                 as events are dispatched
"""

import json
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from services.coordination.src.coordination.core.clock import utcnow
from services.coordination.src.coordination.core.errors import IdentityUnresolved
from services.coordination.src.coordination.core.identity import resolve_connection_identity
from services.coordination.src.coordination.realtime.connection import Connection

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/notifications")
async def notifications_endpoint(websocket: WebSocket, token: str | None = Query(None)):
    state = websocket.app.state
    try:
        actor = resolve_connection_identity(
            state.identity_resolver, token, state.identity_fail_open,
        )
    except IdentityUnresolved as exc:
        logger.info("websocket_rejected", extra={"reason": str(exc)})
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    identity = actor.id if actor else None
    connection = Connection(websocket, identity)
    connection.start()
    state.registry.register_connection(identity, connection)
    # Writes go through the connection queue so frames never interleave
    connection.offer({"type": "connected", "identity": identity})

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except ValueError:
                logger.debug("websocket_bad_frame", extra={"connection_id": connection.id})
                continue
            if isinstance(data, dict) and data.get("type") == "ping":
                connection.offer({"type": "pong", "timestamp": utcnow().isoformat()})
    except WebSocketDisconnect:
        logger.info("websocket_disconnected", extra={
            "identity": identity, "connection_id": connection.id,
        })
    except Exception as exc:
        logger.error("websocket_error", extra={
            "identity": identity, "connection_id": connection.id, "error": str(exc),
        })
    finally:
        state.registry.unregister_connection(identity, connection)
        await connection.close()
