"""Compliance report DTO."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class ComplianceStatus(StrEnum):
    COMPLIANT = "compliant"
    AT_RISK = "at_risk"
    NON_COMPLIANT = "non_compliant"


@dataclass
class ComplianceReport:
    """Audit and violation totals for a reporting period."""

    report_date: datetime
    period_start: datetime
    period_end: datetime
    total_audit_events: int
    total_violations: int
    critical_violations: int
    high_violations: int
    compliance_score: int
    status: ComplianceStatus
    recommendations: list[str] = field(default_factory=list)
