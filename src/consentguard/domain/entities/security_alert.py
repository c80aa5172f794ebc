"""Security alert raised for high and critical violations."""

from dataclasses import dataclass
from datetime import datetime

from consentguard.domain.value_objects import RiskLevel


@dataclass
class SecurityAlert:
    id: str
    violation_id: str
    type: str
    severity: RiskLevel
    description: str
    patient_id: str | None
    actor_id: str
    timestamp: datetime
    acknowledged: bool = False
