"""Pydantic request/response models for coordination API endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from services.coordination.src.coordination.domains.feedback.schemas import FeedbackRating
from services.coordination.src.coordination.schemas.enums import (
    ConsultationChannel,
    FeedbackType,
    ReferralPriority,
    ReferralType,
    ReferralUrgency,
    ReportSeverity,
    ReportType,
    ReportUrgency,
)


# -- Requests ---------------------------------------------------------------

class CreateConsultationRequest(BaseModel):
    provider_ref: str
    channel_type: ConsultationChannel = ConsultationChannel.VIDEO
    scheduled_start: datetime | None = None
    scheduled_end: datetime | None = None
    notes: str = ""


class CreateReferralRequest(BaseModel):
    patient_ref: str
    referred_to_provider_ref: str | None = None
    title: str = ""
    description: str = ""
    clinical_reason: str = ""
    type: ReferralType = ReferralType.SPECIALIST
    specialty: str = ""
    priority: ReferralPriority = ReferralPriority.ROUTINE
    urgency: ReferralUrgency = ReferralUrgency.MEDIUM
    deadline: datetime | None = None


class CreateReportRequest(BaseModel):
    title: str = ""
    description: str = ""
    type: ReportType = ReportType.OTHER
    severity: ReportSeverity
    urgency: ReportUrgency = ReportUrgency.ROUTINE
    is_anonymous: bool = False


class CreateFeedbackRequest(BaseModel):
    provider_ref: str | None = None
    title: str = ""
    description: str = ""
    type: FeedbackType = FeedbackType.GENERAL
    rating: FeedbackRating
    follow_up_required: bool = False
    is_anonymous: bool = False


class ActionRequest(BaseModel):
    """Action parameters, e.g. {"reason": ...} for cancel or {"content": ...} for add_note."""

    params: dict[str, Any] = Field(default_factory=dict)


# -- Responses ---------------------------------------------------------------

class EntityResponse(BaseModel):
    kind: str
    id: str
    status: str
    entity: dict[str, Any]
    notified: int = 0


class AuditEventResponse(BaseModel):
    id: str
    entity_id: str
    kind: str
    trace_id: str
    step: str
    actor_id: str | None
    payload_json: dict
    created_at: str
