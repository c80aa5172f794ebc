"""Patient consent entity."""

from dataclasses import dataclass, field
from datetime import datetime

from consentguard.domain.value_objects import (
    ConsentStatus,
    ConsentType,
    GeographicScope,
    RiskLevel,
)


@dataclass
class ConsentScope:
    """Where a consent applies. Empty sets mean unrestricted."""

    facilities: set[str] = field(default_factory=set)
    providers: set[str] = field(default_factory=set)
    services: set[str] = field(default_factory=set)
    geographic_scope: GeographicScope = GeographicScope.NATIONAL


@dataclass
class DataCategory:
    """Category of health data covered by a consent."""

    category: str
    sensitivity: RiskLevel
    description: str = ""
    requires_explicit_consent: bool = False


@dataclass
class PatientConsent:
    """Patient consent - granted, then revoked (terminal) or expired (derived)."""

    id: str
    patient_id: str
    consent_type: ConsentType
    status: ConsentStatus
    created_at: datetime
    scope: ConsentScope = field(default_factory=ConsentScope)
    data_categories: list[DataCategory] = field(default_factory=list)
    updated_at: datetime | None = None
    created_by: str | None = None
    expires_at: datetime | None = None
    revoked_at: datetime | None = None
    revoked_by: str | None = None
    revoked_reason: str | None = None
    patient_signature: str | None = None
    witness_signature: str | None = None
    version: int = 1

    def is_active(self, now: datetime) -> bool:
        """Granted and not yet expired."""
        if self.status != ConsentStatus.GRANTED:
            return False
        return self.expires_at is None or self.expires_at > now

    def category_names(self) -> set[str]:
        return {c.category for c in self.data_categories}
