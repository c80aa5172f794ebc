"""Consent classification values."""

from enum import StrEnum


class ConsentType(StrEnum):
    """Purpose a patient consent was granted for."""

    TREATMENT = "treatment"
    PAYMENT = "payment"
    HEALTHCARE_OPERATIONS = "healthcare_operations"
    MARKETING = "marketing"
    RESEARCH = "research"
    THIRD_PARTY = "third_party"
    EMERGENCY = "emergency"


class ConsentStatus(StrEnum):
    """Stored consent status. Expiry is derived, not stored."""

    PENDING = "pending"
    GRANTED = "granted"
    REVOKED = "revoked"
    SUSPENDED = "suspended"
    EXPIRED = "expired"


class GeographicScope(StrEnum):
    LOCAL = "local"
    REGIONAL = "regional"
    NATIONAL = "national"
