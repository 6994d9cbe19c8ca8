"""Pydantic schemas for specialist referrals."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from services.coordination.src.coordination.core.clock import utcnow
from services.coordination.src.coordination.domains.schemas import BaseEntity, UtcDatetime
from services.coordination.src.coordination.schemas.enums import (
    EntityKind,
    ReferralOutcome,
    ReferralPriority,
    ReferralStatus,
    ReferralType,
    ReferralUrgency,
)


class ReferralNote(BaseModel):
    """One entry of the referral's communication log. Immutable once added."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(..., min_length=5, max_length=500)
    added_by: str
    added_at: UtcDatetime = Field(default_factory=utcnow)


class Referral(BaseEntity):
    """A provider-to-provider referral with deadline-driven escalation."""

    kind: ClassVar[EntityKind] = EntityKind.REFERRAL

    patient_ref: str
    referring_provider_ref: str
    referred_to_provider_ref: str | None = None

    title: str = Field("", max_length=200)
    description: str = Field("", max_length=1000)
    clinical_reason: str = ""
    type: ReferralType = ReferralType.SPECIALIST
    specialty: str = ""

    priority: ReferralPriority = ReferralPriority.ROUTINE
    urgency: ReferralUrgency = ReferralUrgency.MEDIUM
    deadline: UtcDatetime | None = None
    status: ReferralStatus = ReferralStatus.PENDING

    accepted_at: UtcDatetime | None = None
    accepted_by: str | None = None
    appointment_date: UtcDatetime | None = None
    outcome: ReferralOutcome = ReferralOutcome.ONGOING
    outcome_notes: str | None = None

    notes: tuple[ReferralNote, ...] = ()

    escalation_count: int = Field(0, ge=0)
    last_escalated_at: UtcDatetime | None = None

    def is_participant(self, identity: str) -> bool:
        return identity in (
            self.patient_ref,
            self.referring_provider_ref,
            self.referred_to_provider_ref,
            self.accepted_by,
        )
