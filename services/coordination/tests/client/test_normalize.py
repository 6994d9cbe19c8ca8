"""Tests for notification payload normalization."""

from datetime import datetime, timezone

from services.coordination.src.coordination.client.normalize import (
    GENERIC,
    fallback_id,
    normalize,
    variant_for,
)

RECEIVED = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)
RECEIVED_MS = int(RECEIVED.timestamp() * 1000)


class TestVariants:
    def test_family_lookup(self):
        assert variant_for("consultation:requested").nested_key == "consultation"
        assert variant_for("campaign:created").family == "campaign"
        assert variant_for("system:maintenance") is GENERIC


class TestRecordId:
    def test_nested_id_wins(self):
        record = normalize("referral:accepted", {"id": "outer", "referral": {"id": "inner"}}, received_at=RECEIVED)
        assert record.id == "inner"

    def test_nested_underscore_id(self):
        record = normalize("consultation:requested", {"consultation": {"_id": "abc123"}}, received_at=RECEIVED)
        assert record.id == "abc123"

    def test_payload_id_when_not_nested(self):
        record = normalize("referral:updated", {"_id": "flat-1", "title": "x"}, received_at=RECEIVED)
        assert record.id == "flat-1"

    def test_fallback_id(self):
        record = normalize("report:created", {"title": "Flood"}, received_at=RECEIVED)
        assert record.id == f"report:created-{RECEIVED_MS}"
        assert fallback_id("report:created", RECEIVED) == record.id

    def test_other_family_key_is_ignored(self):
        record = normalize("referral:updated", {"report": {"id": "r1"}}, received_at=RECEIVED)
        assert record.id == f"referral:updated-{RECEIVED_MS}"

    def test_non_dict_payload(self):
        record = normalize("referral:updated", None, received_at=RECEIVED)
        assert record.data == {}
        assert record.message == "referral:updated event received"


class TestMessage:
    def test_explicit_message_wins(self):
        record = normalize("report:created", {"report": {"title": "Flood"}}, "Server says hi")
        assert record.message == "Server says hi"

    def test_campaign_message(self):
        assert normalize("campaign:created", {"campaign": {"title": "Vaccines"}}).message == "New campaign: Vaccines"
        assert normalize("campaign:created", {"campaign": {"name": "Polio"}}).message == "New campaign: Polio"
        assert normalize("campaign:created", {}).message == "New campaign: Campaign"

    def test_report_created_message(self):
        assert normalize("report:created", {"report": {"type": "outbreak"}}).message == "New health report: outbreak"
        assert normalize("report:created", {}).message == "New health report: Report"

    def test_flat_campaign_payload(self):
        record = normalize("campaign:created", {"_id": "c1", "title": "Polio drive"})
        assert record.id == "c1"
        assert record.message == "New campaign: Polio drive"
        assert normalize("campaign:created", {"name": "Measles"}).message == "New campaign: Measles"

    def test_flat_report_payload(self):
        assert normalize("report:created", {"_id": "r1", "title": "Flood"}).message == "New health report: Flood"
        assert normalize("report:created", {"type": "injury"}).message == "New health report: injury"

    def test_consultation_defaults(self):
        assert normalize("consultation:requested", {}).message == "New consultation request"
        assert normalize("consultation:responded", {}).message == "Your consultation request was updated"
        assert normalize("consultation:requested", {"message": "Ada needs you"}).message == "Ada needs you"

    def test_payload_message(self):
        assert normalize("referral:accepted", {"message": "Accepted by Dr. House"}).message == "Accepted by Dr. House"

    def test_nested_title_then_generic(self):
        assert normalize("referral:updated", {"referral": {"title": "Cardiology"}}).message == "Cardiology"
        assert normalize("feedback:updated", {"feedback": {}}).message == "feedback:updated event received"

    def test_flat_title_fallback(self):
        record = normalize("referral:updated", {"id": "r1", "title": "Cardiology"})
        assert record.message == "Cardiology"
        # A nested entity takes precedence over top-level fields
        record = normalize("referral:updated", {"title": "Outer", "referral": {"title": "Inner"}})
        assert record.message == "Inner"

    def test_record_defaults(self):
        record = normalize("referral:updated", {"referral": {"id": "r1"}}, received_at=RECEIVED)
        assert record.read is False
        assert record.created_at == RECEIVED
        assert record.data == {"referral": {"id": "r1"}}
