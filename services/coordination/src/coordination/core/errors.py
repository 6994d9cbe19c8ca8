"""Error taxonomy for lifecycle transitions and notification delivery."""


class CoordinationError(Exception):
    """Base class for all care-coordination errors."""

    pass


class InvalidTransition(CoordinationError):
    """Raised when a status change violates its preconditions.

    The entity passed in is never modified; callers surface ``reason``
    to the user and do not retry.
    """

    def __init__(self, kind: str, entity_id: str, action: str, status: str, reason: str):
        self.kind = kind
        self.entity_id = entity_id
        self.action = action
        self.status = status
        self.reason = reason
        super().__init__(
            f"Cannot {action} {kind} '{entity_id}' in status '{status}': {reason}"
        )


class EntityNotFound(CoordinationError):
    """Raised by the entity store when a record does not exist."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} '{entity_id}' not found")


class UnknownEntityKind(CoordinationError):
    """Raised when no lifecycle module is registered for an entity kind."""

    pass


class IdentityUnresolved(CoordinationError):
    """Connection-time identity lookup failed.

    Only raised when anonymous fallback is disabled; otherwise the
    connection proceeds without an identity.
    """

    pass


class DispatchWriteFailure(CoordinationError):
    """A single connection's delivery failed. Logged and dropped, never surfaced."""

    def __init__(self, identity: str | None, connection_id: str, cause: BaseException):
        self.identity = identity
        self.connection_id = connection_id
        self.cause = cause
        super().__init__(
            f"Delivery to connection '{connection_id}' "
            f"(identity={identity or 'anonymous'}) failed: {cause!r}"
        )
