"""Domain entities."""

from consentguard.domain.entities.access_decision import AccessDecision
from consentguard.domain.entities.audit_log_entry import Actor, AuditLogEntry
from consentguard.domain.entities.compliance_violation import ComplianceViolation
from consentguard.domain.entities.patient_consent import (
    ConsentScope,
    DataCategory,
    PatientConsent,
)
from consentguard.domain.entities.permission import Permission
from consentguard.domain.entities.principal import Principal
from consentguard.domain.entities.role import Role
from consentguard.domain.entities.security_alert import SecurityAlert
from consentguard.domain.entities.user_role_assignment import (
    UserRoleAssignment,
    assignment_id,
)

__all__ = [
    "AccessDecision",
    "Actor",
    "AuditLogEntry",
    "ComplianceViolation",
    "ConsentScope",
    "DataCategory",
    "PatientConsent",
    "Permission",
    "Principal",
    "Role",
    "SecurityAlert",
    "UserRoleAssignment",
    "assignment_id",
]
