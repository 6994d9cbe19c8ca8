"""Connection and request identity resolution.

Identity tokens are HS256 JWTs carrying ``sub`` (actor id), ``name``
and ``role``. Resolution happens once per connection or request.
"""

import logging
from datetime import timedelta
from typing import Protocol

from jose import JWTError, jwt

from services.coordination.src.coordination.config import settings
from services.coordination.src.coordination.core.clock import utcnow
from services.coordination.src.coordination.core.errors import IdentityUnresolved
from services.coordination.src.coordination.domains.schemas import Actor
from services.coordination.src.coordination.schemas.enums import ActorRole

logger = logging.getLogger(__name__)


class IdentityResolver(Protocol):
    def from_token(self, token: str | None) -> Actor | None:
        """Return the actor for ``token``, or None when it cannot be resolved."""
        ...


class JwtIdentityResolver:
    """Verify identity tokens with python-jose."""

    def __init__(self, secret: str | None = None, algorithm: str | None = None):
        self._secret = secret or settings.jwt_secret
        self._algorithm = algorithm or settings.jwt_algorithm

    def from_token(self, token: str | None) -> Actor | None:
        if not token:
            return None
        try:
            claims = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError as exc:
            logger.info("identity_token_rejected", extra={"error": str(exc)})
            return None

        subject = claims.get("sub")
        if not subject:
            logger.info("identity_token_rejected", extra={"error": "missing sub claim"})
            return None
        try:
            role = ActorRole(claims.get("role", ActorRole.PATIENT.value))
        except ValueError:
            logger.info("identity_token_rejected", extra={"error": "unknown role"})
            return None
        return Actor(id=str(subject), display_name=claims.get("name") or "", role=role)

    def issue(self, actor: Actor, expires_in: timedelta = timedelta(hours=12)) -> str:
        """Sign a token for ``actor``. Used by local tooling and tests."""
        claims = {
            "sub": actor.id,
            "name": actor.display_name,
            "role": actor.role.value,
            "exp": utcnow() + expires_in,
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)


def resolve_connection_identity(
    resolver: IdentityResolver,
    token: str | None,
    fail_open: bool,
) -> Actor | None:
    """Resolve a connection's identity.

    With ``fail_open`` an unresolvable token yields None and the
    connection continues as anonymous; otherwise IdentityUnresolved is
    raised and the caller closes the connection.
    """
    actor = resolver.from_token(token)
    if actor is not None:
        return actor

    if not fail_open:
        raise IdentityUnresolved("connection identity could not be resolved")
    logger.info("connection_anonymous", extra={"token_present": bool(token)})
    return None
