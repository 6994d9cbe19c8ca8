"""Base schemas shared by every lifecycle-managed entity.

All entity schemas inherit from BaseEntity so the status engine, the
entity store and the fan-out payloads can treat them uniformly.
"""

import uuid
from abc import ABC
from datetime import datetime
from typing import Annotated, ClassVar

from pydantic import AfterValidator, BaseModel, Field

from services.coordination.src.coordination.core.clock import ensure_utc, utcnow
from services.coordination.src.coordination.schemas.enums import ActorRole, EntityKind

UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


def new_id() -> str:
    return str(uuid.uuid4())


class Actor(BaseModel):
    """The authenticated party performing an action."""

    id: str = Field(..., description="Stable identity; also the notification room key")
    display_name: str = Field("", description="Human-readable name used in messages")
    role: ActorRole = ActorRole.PATIENT

    @property
    def name(self) -> str:
        return self.display_name or self.id

    def has_role(self, roles) -> bool:
        return self.role in roles


SYSTEM_ACTOR = Actor(id="system", display_name="System", role=ActorRole.SYSTEM)


class BaseEntity(BaseModel, ABC):
    """Abstract base for all care-coordination entities.

    Subclasses set ``kind`` and narrow ``status`` to their own enum.
    """

    kind: ClassVar[EntityKind]

    id: str = Field(default_factory=new_id)
    status: str
    created_at: UtcDatetime = Field(default_factory=utcnow)
    updated_at: UtcDatetime = Field(default_factory=utcnow)

    @property
    def status_value(self) -> str:
        return getattr(self.status, "value", self.status)

    def evolve(self, **changes):
        """Return a re-validated copy with ``changes`` applied."""
        return type(self).model_validate({**self.model_dump(), **changes})

    def snapshot(self) -> dict:
        """JSON-safe copy used in notification payloads and the store."""
        return self.model_dump(mode="json")
