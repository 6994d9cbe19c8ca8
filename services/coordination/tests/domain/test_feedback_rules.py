"""Tests for feedback priority and lifecycle."""

import pytest

from services.coordination.src.coordination.core.errors import InvalidTransition
from services.coordination.src.coordination.domains.feedback.module import feedback_module
from services.coordination.src.coordination.domains.feedback.priority import (
    average_rating,
    derive_priority,
)
from services.coordination.src.coordination.domains.feedback.schemas import Feedback, FeedbackRating
from services.coordination.src.coordination.schemas.enums import (
    FeedbackStatus,
    FeedbackType,
    Priority,
)


@pytest.fixture
def feedback(patient, doctor):
    return Feedback(
        patient_ref=patient.id,
        provider_ref=doctor.id,
        type=FeedbackType.WAIT_TIME,
        rating=FeedbackRating(overall=3),
    )


# ---------------------------------------------------------------------------
# Priority derivation
# ---------------------------------------------------------------------------

class TestFeedbackPriority:
    def test_medication_low_rating_is_critical(self):
        fb = Feedback(patient_ref="p", type=FeedbackType.MEDICATION, rating={"overall": 2})
        assert fb.priority == Priority.CRITICAL

    def test_care_quality_low_rating_is_critical(self):
        fb = Feedback(patient_ref="p", type=FeedbackType.CARE_QUALITY, rating={"overall": 1})
        assert fb.priority == Priority.CRITICAL

    def test_other_types_low_rating_is_high(self):
        fb = Feedback(patient_ref="p", type=FeedbackType.FACILITY, rating={"overall": 2})
        assert fb.priority == Priority.HIGH

    @pytest.mark.parametrize("average,expected", [
        (1.0, Priority.HIGH),
        (2.0, Priority.HIGH),
        (2.5, Priority.MEDIUM),
        (3.0, Priority.MEDIUM),
        (3.2, Priority.LOW),
        (5.0, Priority.LOW),
    ])
    def test_thresholds(self, average, expected):
        assert derive_priority(FeedbackType.GENERAL, average) == expected

    def test_average_covers_present_components(self):
        rating = FeedbackRating(overall=4, communication=2)
        assert rating.average == 3.0
        assert average_rating([5, None, None, 1, None]) == 3.0

    def test_components_pull_priority(self):
        fb = Feedback(
            patient_ref="p", type=FeedbackType.MEDICATION,
            rating={"overall": 3, "care_quality": 1, "wait_time": 2},
        )
        assert fb.priority == Priority.CRITICAL

    def test_idempotent(self, feedback):
        assert {feedback.priority for _ in range(5)} == {Priority.MEDIUM}

    def test_rating_out_of_range(self):
        with pytest.raises(ValueError):
            FeedbackRating(overall=6)
        with pytest.raises(ValueError):
            FeedbackRating(overall=3, facility=0)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

class TestFeedbackLifecycle:
    def test_created_notifies_provider(self, feedback, patient, doctor):
        effects = feedback_module.created(feedback, patient)
        assert effects[0].target_identity == doctor.id
        assert effects[0].event_type == "feedback:created"

    def test_created_without_provider_notifies_nobody(self, patient):
        fb = Feedback(patient_ref=patient.id, rating={"overall": 4})
        assert feedback_module.created(fb, patient) == []

    def test_respond_sets_addressed(self, feedback, doctor, patient, t0):
        outcome = feedback_module.apply(
            feedback, "respond", doctor, t0, {"content": "Thanks, we added a second triage desk."},
        )
        assert outcome.entity.status == FeedbackStatus.ADDRESSED
        assert outcome.entity.response.responded_by == doctor.id
        assert outcome.entity.response.responded_at == t0
        assert outcome.effects[0].target_identity == patient.id
        assert outcome.effects[0].event_type == "feedback:responded"

    def test_short_response_rejected(self, feedback, doctor, t0):
        with pytest.raises(InvalidTransition):
            feedback_module.apply(feedback, "respond", doctor, t0, {"content": "ok"})

    def test_patient_cannot_respond(self, feedback, patient, t0):
        with pytest.raises(InvalidTransition):
            feedback_module.apply(feedback, "respond", patient, t0, {"content": "Responding to myself"})

    def test_status_moves_forward_only(self, feedback, doctor, t0):
        resolved = feedback_module.apply(feedback, "update_status", doctor, t0, {"status": "resolved"}).entity
        assert resolved.status == FeedbackStatus.RESOLVED
        with pytest.raises(InvalidTransition):
            feedback_module.apply(resolved, "update_status", doctor, t0, {"status": "reviewed"})
        with pytest.raises(InvalidTransition):
            feedback_module.apply(resolved, "respond", doctor, t0, {"content": "Too late to respond here"})

    def test_rerate_recomputes_priority(self, feedback, patient, doctor, t0):
        outcome = feedback_module.apply(feedback, "rerate", patient, t0, {"rating": {"overall": 1}})
        assert outcome.entity.priority == Priority.HIGH
        assert outcome.effects[0].target_identity == doctor.id
        assert outcome.effects[0].event_type == "feedback:rerated"

    def test_cannot_rerate_closed(self, feedback, patient, admin, t0):
        closed = feedback_module.apply(feedback, "update_status", admin, t0, {"status": "closed"}).entity
        with pytest.raises(InvalidTransition):
            feedback_module.apply(closed, "rerate", patient, t0, {"rating": {"overall": 5}})

    def test_invalid_rerate_rejected(self, feedback, patient, t0):
        with pytest.raises(InvalidTransition):
            feedback_module.apply(feedback, "rerate", patient, t0, {"rating": {"overall": 9}})
