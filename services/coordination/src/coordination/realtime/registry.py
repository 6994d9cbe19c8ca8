"""Identity room registry.

Maps an actor identity to the set of its live connections. Connections
without an identity are kept apart as anonymous; they only see
broadcasts. Every mutation happens under one lock and readers get a
snapshot, so no caller ever holds the lock while writing to a transport.
"""

import logging
import threading

from services.coordination.src.coordination.realtime.connection import Connection

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Thread-safe identity → connections map."""

    def __init__(self):
        self._lock = threading.Lock()
        self._rooms: dict[str, set[Connection]] = {}
        self._anonymous: set[Connection] = set()

    def register_connection(self, identity: str | None, connection: Connection) -> None:
        """Add ``connection`` to the room for ``identity``. Re-registering is a no-op."""
        with self._lock:
            room = self._anonymous if identity is None else self._rooms.setdefault(identity, set())
            duplicate = connection in room
            room.add(connection)
            size = len(room)

        if duplicate:
            logger.debug("connection_already_registered", extra={
                "identity": identity, "connection_id": connection.id,
            })
            return
        logger.info("connection_registered", extra={
            "identity": identity, "connection_id": connection.id, "room_size": size,
        })

    def unregister_connection(self, identity: str | None, connection: Connection) -> bool:
        """Remove ``connection``. Safe to repeat or to call for unknown connections.

        Returns True only when something was actually removed.
        """
        with self._lock:
            if identity is None:
                room = self._anonymous
            else:
                room = self._rooms.get(identity)
            removed = room is not None and connection in room
            if removed:
                room.discard(connection)
                if identity is not None and not room:
                    del self._rooms[identity]

        if removed:
            logger.info("connection_unregistered", extra={
                "identity": identity, "connection_id": connection.id,
            })
        else:
            logger.debug("connection_unknown", extra={
                "identity": identity, "connection_id": connection.id,
            })
        return removed

    def connections_for(self, identity: str) -> list[Connection]:
        with self._lock:
            return list(self._rooms.get(identity, ()))

    def all_connections(self) -> list[Connection]:
        with self._lock:
            connections = list(self._anonymous)
            for room in self._rooms.values():
                connections.extend(room)
            return connections

    def identities(self) -> list[str]:
        with self._lock:
            return list(self._rooms)

    def room_size(self, identity: str) -> int:
        with self._lock:
            return len(self._rooms.get(identity, ()))

    @property
    def anonymous_count(self) -> int:
        with self._lock:
            return len(self._anonymous)
