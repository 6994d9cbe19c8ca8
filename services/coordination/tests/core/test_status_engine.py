"""Tests for the status engine entry point."""

import logging
from datetime import timedelta

import pytest

from services.coordination.src.coordination.core.errors import InvalidTransition
from services.coordination.src.coordination.core.status import StatusEngine
from services.coordination.src.coordination.domains.consultation.schemas import Consultation
from services.coordination.src.coordination.domains.report.schemas import HealthReport
from services.coordination.src.coordination.schemas.enums import ConsultationStatus


@pytest.fixture
def status_engine(t0):
    return StatusEngine(clock=lambda: t0)


@pytest.fixture
def consultation(patient, doctor, t0):
    return Consultation(
        patient_ref=patient.id,
        provider_ref=doctor.id,
        scheduled_start=t0 - timedelta(hours=1),
        scheduled_end=t0 - timedelta(minutes=30),
    )


class TestTransition:
    def test_uses_injected_clock(self, status_engine, consultation, doctor, t0):
        outcome = status_engine.transition(consultation, "respond_accept", doctor)
        assert outcome.entity.responded_at == t0
        assert outcome.entity.updated_at == t0

    def test_explicit_now_wins(self, status_engine, consultation, doctor, t0):
        later = t0 + timedelta(days=1)
        outcome = status_engine.transition(consultation, "respond_accept", doctor, now=later)
        assert outcome.entity.responded_at == later

    def test_params_reach_module(self, status_engine, consultation, patient):
        outcome = status_engine.transition(consultation, "cancel", patient, reason="travel")
        assert outcome.entity.cancellation_reason == "travel"

    def test_unknown_action_rejected(self, status_engine, consultation, doctor):
        with pytest.raises(InvalidTransition) as exc_info:
            status_engine.transition(consultation, "archive", doctor)
        assert exc_info.value.kind == "consultation"
        assert exc_info.value.entity_id == consultation.id

    def test_unknown_action_logged_as_rejection(self, status_engine, consultation, doctor, caplog):
        caplog.set_level(logging.INFO, logger="services.coordination.src.coordination.core.status")
        with pytest.raises(InvalidTransition):
            status_engine.transition(consultation, "archive", doctor)
        rejected = [r for r in caplog.records if r.getMessage() == "transition_rejected"]
        assert len(rejected) == 1
        assert rejected[0].action == "archive"
        assert rejected[0].reason == "unknown action"

    def test_rejection_leaves_entity_unchanged(self, status_engine, consultation, patient):
        before = consultation.model_dump()
        with pytest.raises(InvalidTransition):
            status_engine.transition(consultation, "respond_accept", patient)
        assert consultation.model_dump() == before

    def test_rejection_message(self, status_engine, consultation, patient):
        with pytest.raises(InvalidTransition) as exc_info:
            status_engine.transition(consultation, "mark_completed", patient)
        assert "requested" in str(exc_info.value)


class TestCreateAndSweep:
    def test_create_returns_creation_fan_outs(self, status_engine, patient):
        report = HealthReport(reporter_ref=patient.id, severity="high")
        outcome = status_engine.create(report, patient)
        assert outcome.entity is report
        assert outcome.effects[0].target_identity is None

    def test_sweep_uses_clock(self, status_engine, consultation, doctor):
        scheduled = status_engine.transition(consultation, "respond_accept", doctor).entity
        outcome = status_engine.sweep(scheduled)
        assert outcome.entity.status == ConsultationStatus.COMPLETED

    def test_sweep_nothing_due(self, status_engine, consultation):
        assert status_engine.sweep(consultation) is None
