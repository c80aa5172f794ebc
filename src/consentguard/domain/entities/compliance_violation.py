"""Compliance violation entity."""

from dataclasses import dataclass, field
from datetime import datetime

from consentguard.domain.value_objects import RiskLevel, ViolationType


@dataclass
class ComplianceViolation:
    """Violation record - created once, reviewed by the investigation workflow."""

    id: str
    type: ViolationType
    severity: RiskLevel
    description: str
    patient_id: str | None
    actor_id: str
    timestamp: datetime
    data_categories: list[str] = field(default_factory=list)
    reviewed: bool = False
