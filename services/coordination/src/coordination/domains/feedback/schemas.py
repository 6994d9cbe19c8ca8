"""Pydantic schemas for patient feedback."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, computed_field

from services.coordination.src.coordination.core.clock import utcnow
from services.coordination.src.coordination.domains.feedback.priority import (
    average_rating,
    derive_priority,
)
from services.coordination.src.coordination.domains.schemas import BaseEntity, UtcDatetime
from services.coordination.src.coordination.schemas.enums import (
    EntityKind,
    FeedbackStatus,
    FeedbackType,
    Priority,
)


class FeedbackRating(BaseModel):
    """Overall rating plus up to four optional component ratings, each 1-5."""

    model_config = ConfigDict(frozen=True)

    overall: int = Field(..., ge=1, le=5)
    care_quality: int | None = Field(None, ge=1, le=5)
    communication: int | None = Field(None, ge=1, le=5)
    wait_time: int | None = Field(None, ge=1, le=5)
    facility: int | None = Field(None, ge=1, le=5)

    @property
    def average(self) -> float:
        return average_rating((
            self.overall, self.care_quality, self.communication, self.wait_time, self.facility,
        ))


class FeedbackResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str = Field(..., min_length=10, max_length=1000)
    responded_by: str
    responded_at: UtcDatetime = Field(default_factory=utcnow)


class Feedback(BaseEntity):
    """Patient feedback about care received.

    ``priority`` follows the rating on every access and is never stored
    as an input of its own.
    """

    kind: ClassVar[EntityKind] = EntityKind.FEEDBACK

    patient_ref: str
    provider_ref: str | None = None
    title: str = Field("", max_length=200)
    description: str = Field("", max_length=2000)
    type: FeedbackType = FeedbackType.GENERAL
    rating: FeedbackRating
    status: FeedbackStatus = FeedbackStatus.PENDING
    response: FeedbackResponse | None = None
    follow_up_required: bool = False
    follow_up_date: UtcDatetime | None = None
    is_anonymous: bool = False

    @computed_field
    @property
    def priority(self) -> Priority:
        return derive_priority(self.type, self.rating.average)
