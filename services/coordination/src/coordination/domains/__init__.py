"""Lifecycle modules package.

Registers every entity lifecycle module with the central registry.
"""

from services.coordination.src.coordination.domains.consultation.module import consultation_module
from services.coordination.src.coordination.domains.feedback.module import feedback_module
from services.coordination.src.coordination.domains.referral.module import referral_module
from services.coordination.src.coordination.domains.registry import LifecycleRegistry
from services.coordination.src.coordination.domains.report.module import report_module

# Register all lifecycle modules
LifecycleRegistry.register(consultation_module)
LifecycleRegistry.register(referral_module)
LifecycleRegistry.register(report_module)
LifecycleRegistry.register(feedback_module)

__all__ = ["LifecycleRegistry"]
