"""Tests for the escalation sweeper against a real entity store."""

import asyncio
from datetime import timedelta

import pytest

from services.coordination.src.coordination.core.errors import EntityNotFound
from services.coordination.src.coordination.core.escalation import EscalationSweeper
from services.coordination.src.coordination.core.status import StatusEngine
from services.coordination.src.coordination.db.repository import AuditEventRepository, SqlEntityStore
from services.coordination.src.coordination.domains.consultation.schemas import Consultation
from services.coordination.src.coordination.domains.referral.schemas import Referral
from services.coordination.src.coordination.domains.report.schemas import HealthReport
from services.coordination.src.coordination.schemas.enums import (
    ConsultationStatus,
    ReferralPriority,
    ReferralUrgency,
)


class RecordingDispatcher:
    def __init__(self):
        self.effects = []

    def deliver(self, effects):
        self.effects.extend(effects)
        return len(effects)


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock(t0):
    return Clock(t0)


@pytest.fixture
def store(engine):
    return SqlEntityStore(engine)


@pytest.fixture
def audit(engine):
    return AuditEventRepository(engine)


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def sweeper(store, dispatcher, audit, clock):
    return EscalationSweeper(store, StatusEngine(clock=clock), dispatcher, audit)


@pytest.fixture
def overdue_referral(store, t0, doctor, specialist):
    return store.save(Referral(
        patient_ref="patient-1",
        referring_provider_ref=doctor.id,
        referred_to_provider_ref=specialist.id,
        priority=ReferralPriority.ROUTINE,
        urgency=ReferralUrgency.LOW,
        deadline=t0,
    ))


class TestRefresh:
    def test_read_escalates_one_step(self, sweeper, overdue_referral, clock, t0, dispatcher):
        clock.now = t0 + timedelta(minutes=1)
        refreshed = sweeper.refresh("referral", overdue_referral.id)
        assert refreshed.priority == ReferralPriority.URGENT
        assert refreshed.urgency == ReferralUrgency.MEDIUM
        assert len(dispatcher.effects) == 1

    def test_repeated_reads_keep_stepping_to_ceiling(self, sweeper, overdue_referral, clock, t0):
        for minute in range(1, 6):
            clock.now = t0 + timedelta(minutes=minute)
            refreshed = sweeper.refresh("referral", overdue_referral.id)
        assert refreshed.priority == ReferralPriority.EMERGENCY
        assert refreshed.urgency == ReferralUrgency.CRITICAL
        assert refreshed.escalation_count == 3

    def test_read_before_deadline_changes_nothing(self, sweeper, overdue_referral, store, dispatcher):
        refreshed = sweeper.refresh("referral", overdue_referral.id)
        assert refreshed.priority == ReferralPriority.ROUTINE
        assert dispatcher.effects == []

    def test_change_is_persisted_and_audited(self, sweeper, overdue_referral, store, audit, clock, t0):
        clock.now = t0 + timedelta(minutes=1)
        sweeper.refresh("referral", overdue_referral.id)
        assert store.load("referral", overdue_referral.id).urgency == ReferralUrgency.MEDIUM
        steps = [row["step"] for row in audit.list_by_entity(overdue_referral.id)]
        assert steps == ["SWEEP"]

    def test_missing_entity(self, sweeper):
        with pytest.raises(EntityNotFound):
            sweeper.refresh("referral", "nope")


class TestSweepAll:
    def test_sweeps_every_sweepable_kind(self, sweeper, store, overdue_referral, patient, doctor, clock, t0):
        scheduled = store.save(Consultation(
            patient_ref=patient.id,
            provider_ref=doctor.id,
            scheduled_start=t0,
            scheduled_end=t0 + timedelta(minutes=30),
            status=ConsultationStatus.SCHEDULED,
        ))
        requested = store.save(Consultation(
            patient_ref=patient.id,
            provider_ref=doctor.id,
            scheduled_start=t0,
            scheduled_end=t0 + timedelta(minutes=30),
        ))
        store.save(HealthReport(reporter_ref=patient.id, severity="low"))

        clock.now = t0 + timedelta(minutes=31)
        assert sweeper.sweep_all() == 2

        assert store.load("consultation", scheduled.id).status == ConsultationStatus.COMPLETED
        assert store.load("consultation", requested.id).status == ConsultationStatus.REQUESTED
        assert store.load("referral", overdue_referral.id).priority == ReferralPriority.URGENT

    def test_failure_on_one_entity_does_not_stop_pass(self, store, audit, overdue_referral, clock, t0, doctor, specialist):
        second = store.save(Referral(
            patient_ref="patient-2",
            referring_provider_ref=doctor.id,
            referred_to_provider_ref=specialist.id,
            deadline=t0,
        ))

        class FlakyDispatcher(RecordingDispatcher):
            def deliver(self, effects):
                if effects and effects[0].payload["referral"]["id"] == overdue_referral.id:
                    raise RuntimeError("transport exploded")
                return super().deliver(effects)

        flaky = FlakyDispatcher()
        sweeper = EscalationSweeper(store, StatusEngine(clock=clock), flaky, audit)
        clock.now = t0 + timedelta(minutes=1)
        assert sweeper.sweep_all() == 1
        assert store.load("referral", second.id).escalation_count == 1

    @pytest.mark.asyncio
    async def test_run_periodic_sweeps_until_cancelled(self, sweeper, overdue_referral, dispatcher, clock, t0):
        clock.now = t0 + timedelta(minutes=1)
        task = asyncio.create_task(sweeper.run_periodic(0.01))
        for _ in range(200):
            await asyncio.sleep(0.01)
            if len(dispatcher.effects) >= 2:
                break
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(dispatcher.effects) >= 2
        assert all(e.event_type == "referral:escalated" for e in dispatcher.effects)
