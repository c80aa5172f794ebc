"""Permission and consent verification results."""

from dataclasses import dataclass, field
from datetime import datetime

from consentguard.domain.entities import DataCategory, PatientConsent
from consentguard.domain.value_objects import Condition, ConsentType, RiskLevel


@dataclass(frozen=True)
class PermissionCheck:
    """Outcome of a role/permission lookup."""

    granted: bool
    reason: str | None = None
    conditions: dict[str, Condition] = field(default_factory=dict)


@dataclass
class VerificationResult:
    """Scope verification of a consent against a request."""

    valid: bool
    risk_level: RiskLevel
    audit_required: bool
    consent_type: ConsentType
    restrictions: list[str] = field(default_factory=list)
    data_categories: list[DataCategory] = field(default_factory=list)
    consent_id: str | None = None
    expires_at: datetime | None = None
    justification: str = ""


@dataclass(frozen=True)
class ConsentLookup:
    """Resolved consent plus how many active consents were considered."""

    consent: PatientConsent | None
    active_count: int
