"""Pydantic schemas for consultations."""

from __future__ import annotations

from typing import ClassVar

from pydantic import Field, model_validator

from services.coordination.src.coordination.domains.schemas import BaseEntity, UtcDatetime
from services.coordination.src.coordination.schemas.enums import (
    ConsultationChannel,
    ConsultationStatus,
    EntityKind,
)


class Consultation(BaseEntity):
    """A patient's request for a remote consultation with a provider."""

    kind: ClassVar[EntityKind] = EntityKind.CONSULTATION

    patient_ref: str
    provider_ref: str
    scheduled_start: UtcDatetime | None = None
    scheduled_end: UtcDatetime | None = None
    channel_type: ConsultationChannel = ConsultationChannel.VIDEO
    status: ConsultationStatus = ConsultationStatus.REQUESTED
    notes: str = ""

    responded_at: UtcDatetime | None = None
    completed_at: UtcDatetime | None = None
    cancelled_at: UtcDatetime | None = None
    cancelled_by: str | None = None
    cancellation_reason: str | None = Field(None, max_length=500)

    @model_validator(mode="after")
    def _end_after_start(self) -> "Consultation":
        if self.scheduled_start and self.scheduled_end and self.scheduled_end <= self.scheduled_start:
            raise ValueError("scheduled_end must be after scheduled_start")
        return self
