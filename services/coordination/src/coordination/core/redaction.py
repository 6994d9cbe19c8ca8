"""Redaction helpers for safe logging and audit storage of patient data."""

import hashlib
import re
from typing import Any


# Patterns that should be redacted in free text
_SENSITIVE_PATTERNS = [
    re.compile(r"\b\d{3}-\d{2}-\d{4}\b"),  # SSN
    re.compile(r"\b\+?\d{10,12}\b"),  # Phone numbers
    re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b"),  # Email
]

_SENSITIVE_KEYS = {"ssn", "phone", "email", "address", "name", "display_name",
                   "patient_name", "date_of_birth", "dob", "clinical_reason"}


def redact_value(value: str) -> str:
    """Hash a sensitive string value so equal inputs stay correlatable."""
    return f"REDACTED:{hashlib.sha256(value.encode()).hexdigest()[:12]}"


def _redact_text(value: str) -> str:
    for pattern in _SENSITIVE_PATTERNS:
        value = pattern.sub("[REDACTED]", value)
    return value


def _redact_any(value: Any) -> Any:
    if isinstance(value, dict):
        return redact_dict(value)
    if isinstance(value, (list, tuple)):
        return [_redact_any(item) for item in value]
    if isinstance(value, str):
        return _redact_text(value)
    return value


def redact_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively redact sensitive fields, including inside lists."""
    result = {}
    for key, value in data.items():
        if str(key).lower() in _SENSITIVE_KEYS:
            result[key] = redact_value(str(value)) if value else None
        else:
            result[key] = _redact_any(value)
    return result
