"""Consent DTOs."""

from dataclasses import dataclass, field
from datetime import datetime

from consentguard.domain.entities import ConsentScope, DataCategory
from consentguard.domain.value_objects import ConsentStatus, ConsentType


@dataclass
class ConsentCreateInput:
    """Input for recording a patient consent."""

    patient_id: str
    consent_type: ConsentType
    data_categories: list[DataCategory]
    scope: ConsentScope = field(default_factory=ConsentScope)
    status: ConsentStatus = ConsentStatus.GRANTED
    expires_at: datetime | None = None
    patient_signature: str | None = None
    witness_signature: str | None = None


@dataclass
class ConsentSummary:
    """Per-patient consent counts."""

    patient_id: str
    active_consents: int = 0
    expired_consents: int = 0
    revoked_consents: int = 0
    last_consent_date: datetime | None = None
    next_expiry_date: datetime | None = None
