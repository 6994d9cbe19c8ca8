"""Health report priority derivation.

  severity score: critical 4, high 3, medium 2, low 1
  urgency score:  emergency 3, urgent 2, routine 1

  total >= 6 → critical, >= 4 → high, >= 2 → medium, else low

A pure function of its two inputs, so recomputing it any number of times
gives the same answer.
"""

from services.coordination.src.coordination.schemas.enums import (
    Priority,
    ReportSeverity,
    ReportUrgency,
)

SEVERITY_SCORES = {
    ReportSeverity.CRITICAL: 4,
    ReportSeverity.HIGH: 3,
    ReportSeverity.MEDIUM: 2,
    ReportSeverity.LOW: 1,
}

URGENCY_SCORES = {
    ReportUrgency.EMERGENCY: 3,
    ReportUrgency.URGENT: 2,
    ReportUrgency.ROUTINE: 1,
}


def derive_priority(severity: ReportSeverity, urgency: ReportUrgency) -> Priority:
    total = SEVERITY_SCORES[ReportSeverity(severity)] + URGENCY_SCORES[ReportUrgency(urgency)]
    if total >= 6:
        return Priority.CRITICAL
    if total >= 4:
        return Priority.HIGH
    if total >= 2:
        return Priority.MEDIUM
    return Priority.LOW
