"""Compliance violation types."""

from enum import StrEnum


class ViolationType(StrEnum):
    UNAUTHORIZED_ACCESS = "unauthorized_access"
    CONSENT_EXPIRED = "consent_expired"
    SCOPE_VIOLATION = "scope_violation"
    PURPOSE_VIOLATION = "purpose_violation"
