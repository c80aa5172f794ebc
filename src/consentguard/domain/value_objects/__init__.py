"""Domain value objects."""

from consentguard.domain.value_objects.audit import ActionResult, ActionType, AuditDurability
from consentguard.domain.value_objects.condition import Condition, Equals, Predicate
from consentguard.domain.value_objects.consent import (
    ConsentStatus,
    ConsentType,
    GeographicScope,
)
from consentguard.domain.value_objects.decision_outcome import DecisionOutcome
from consentguard.domain.value_objects.risk_level import RiskLevel
from consentguard.domain.value_objects.violation_type import ViolationType

__all__ = [
    "ActionResult",
    "ActionType",
    "AuditDurability",
    "Condition",
    "ConsentStatus",
    "ConsentType",
    "DecisionOutcome",
    "Equals",
    "GeographicScope",
    "Predicate",
    "RiskLevel",
    "ViolationType",
]
