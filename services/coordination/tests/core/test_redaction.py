"""Tests for redaction helpers."""

from services.coordination.src.coordination.core.redaction import redact_dict, redact_value


class TestRedactValue:
    def test_stable_hash(self):
        assert redact_value("Ada") == redact_value("Ada")
        assert redact_value("Ada").startswith("REDACTED:")

    def test_different_inputs_differ(self):
        assert redact_value("Ada") != redact_value("Grace")


class TestRedactDict:
    def test_sensitive_keys(self):
        result = redact_dict({"display_name": "Ada Patient", "status": "pending"})
        assert result["display_name"].startswith("REDACTED:")
        assert result["status"] == "pending"

    def test_empty_sensitive_value(self):
        assert redact_dict({"email": ""})["email"] is None

    def test_patterns_in_free_text(self):
        result = redact_dict({"description": "call 5551234567 or ada@example.com"})
        assert "5551234567" not in result["description"]
        assert "ada@example.com" not in result["description"]

    def test_nested_and_lists(self):
        result = redact_dict({
            "actor": {"id": "u1", "name": "Ada"},
            "notes": [{"content": "mail ada@example.com", "added_by": "u1"}],
        })
        assert result["actor"]["id"] == "u1"
        assert result["actor"]["name"].startswith("REDACTED:")
        assert "[REDACTED]" in result["notes"][0]["content"]

    def test_non_string_values_kept(self):
        assert redact_dict({"escalation_count": 2, "is_anonymous": True}) == {
            "escalation_count": 2, "is_anonymous": True,
        }
