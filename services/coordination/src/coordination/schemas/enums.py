"""Enums for the care coordination service."""

from enum import Enum


class EntityKind(str, Enum):
    """Care-coordination entity families with a status lifecycle."""
    CONSULTATION = "consultation"
    REFERRAL = "referral"
    REPORT = "report"
    FEEDBACK = "feedback"


class ActorRole(str, Enum):
    """Role carried in an actor's identity token."""
    PATIENT = "patient"
    DOCTOR = "doctor"
    HEALTH_WORKER = "health_worker"
    HEALTHCARE_PROVIDER = "healthcare_provider"
    NGO = "ngo"
    ADMIN = "admin"
    SYSTEM = "system"


PROVIDER_ROLES = frozenset({
    ActorRole.DOCTOR, ActorRole.HEALTH_WORKER, ActorRole.HEALTHCARE_PROVIDER, ActorRole.ADMIN,
})
RESPONDER_ROLES = frozenset({
    ActorRole.DOCTOR, ActorRole.HEALTH_WORKER, ActorRole.NGO, ActorRole.ADMIN,
})


# ---------------------------------------------------------------------------
# Consultation
# ---------------------------------------------------------------------------

class ConsultationStatus(str, Enum):
    REQUESTED = "requested"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DENIED = "denied"


class ConsultationChannel(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"
    CHAT = "chat"


class ConsultationAction(str, Enum):
    RESPOND_ACCEPT = "respond_accept"
    RESPOND_DENY = "respond_deny"
    START = "start"
    MARK_COMPLETED = "mark_completed"
    CANCEL = "cancel"


# ---------------------------------------------------------------------------
# Referral
# ---------------------------------------------------------------------------

class ReferralStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class ReferralPriority(str, Enum):
    """Ordered: routine < urgent < emergency."""
    ROUTINE = "routine"
    URGENT = "urgent"
    EMERGENCY = "emergency"


class ReferralUrgency(str, Enum):
    """Ordered: low < medium < high < critical."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ReferralType(str, Enum):
    SPECIALIST = "specialist"
    DIAGNOSTIC = "diagnostic"
    TREATMENT = "treatment"
    FOLLOW_UP = "follow_up"
    EMERGENCY = "emergency"
    PREVENTIVE = "preventive"


class ReferralOutcome(str, Enum):
    IMPROVED = "improved"
    STABLE = "stable"
    WORSENED = "worsened"
    RESOLVED = "resolved"
    ONGOING = "ongoing"


class ReferralAction(str, Enum):
    ACCEPT = "accept"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"
    EXPIRE = "expire"
    ADD_NOTE = "add_note"


# ---------------------------------------------------------------------------
# Health reports
# ---------------------------------------------------------------------------

class Priority(str, Enum):
    """Derived priority shared by health reports and feedback."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ReportSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ReportUrgency(str, Enum):
    ROUTINE = "routine"
    URGENT = "urgent"
    EMERGENCY = "emergency"


class ReportStatus(str, Enum):
    PENDING = "pending"
    INVESTIGATING = "investigating"
    CONFIRMED = "confirmed"
    RESOLVED = "resolved"
    FALSE_ALARM = "false_alarm"


class ReportType(str, Enum):
    ILLNESS = "illness"
    OUTBREAK = "outbreak"
    MENTAL_HEALTH_CRISIS = "mental_health_crisis"
    INJURY = "injury"
    ENVIRONMENTAL_HAZARD = "environmental_hazard"
    MEDICATION_SHORTAGE = "medication_shortage"
    OTHER = "other"


class ReportAction(str, Enum):
    UPDATE_STATUS = "update_status"
    RESOLVE = "resolve"
    UNDO_RESOLUTION = "undo_resolution"
    ESCALATE = "escalate"
    RECLASSIFY = "reclassify"
    ASSIGN = "assign"


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------

class FeedbackStatus(str, Enum):
    """Ordered: pending < reviewed < addressed < resolved < closed."""
    PENDING = "pending"
    REVIEWED = "reviewed"
    ADDRESSED = "addressed"
    RESOLVED = "resolved"
    CLOSED = "closed"


class FeedbackType(str, Enum):
    CARE_QUALITY = "care_quality"
    WAIT_TIME = "wait_time"
    COMMUNICATION = "communication"
    FACILITY = "facility"
    MEDICATION = "medication"
    FOLLOW_UP = "follow_up"
    GENERAL = "general"


class FeedbackAction(str, Enum):
    RESPOND = "respond"
    UPDATE_STATUS = "update_status"
    RERATE = "rerate"


# ---------------------------------------------------------------------------
# Notification events
# ---------------------------------------------------------------------------

class EventType(str, Enum):
    """Event tags observed at the fan-out boundary."""
    CONSULTATION_REQUESTED = "consultation:requested"
    CONSULTATION_RESPONDED = "consultation:responded"
    CONSULTATION_STARTED = "consultation:started"
    CONSULTATION_COMPLETED = "consultation:completed"
    CONSULTATION_CANCELLED = "consultation:cancelled"
    REFERRAL_CREATED = "referral:created"
    REFERRAL_ACCEPTED = "referral:accepted"
    REFERRAL_UPDATED = "referral:updated"
    REFERRAL_NOTE_ADDED = "referral:note_added"
    REFERRAL_ESCALATED = "referral:escalated"
    REPORT_CREATED = "report:created"
    REPORT_UPDATED = "report:updated"
    REPORT_ASSIGNED = "report:assigned"
    FEEDBACK_CREATED = "feedback:created"
    FEEDBACK_RESPONDED = "feedback:responded"
    FEEDBACK_UPDATED = "feedback:updated"
    FEEDBACK_RERATED = "feedback:rerated"
    CAMPAIGN_CREATED = "campaign:created"
