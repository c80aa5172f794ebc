"""Built-in healthcare permission and role catalog."""

from dataclasses import dataclass

PATIENT_READ = "patient:read"
PATIENT_CREATE = "patient:create"
PATIENT_UPDATE = "patient:update"
PATIENT_DELETE = "patient:delete"
PATIENT_EXPORT = "patient:export"

MEDICAL_RECORD_READ = "medical_record:read"
MEDICAL_RECORD_CREATE = "medical_record:create"
MEDICAL_RECORD_UPDATE = "medical_record:update"
MEDICAL_RECORD_DELETE = "medical_record:delete"

APPOINTMENT_READ = "appointment:read"
APPOINTMENT_CREATE = "appointment:create"
APPOINTMENT_UPDATE = "appointment:update"
APPOINTMENT_CANCEL = "appointment:cancel"

CONSENT_READ = "consent:read"
CONSENT_CREATE = "consent:create"
CONSENT_UPDATE = "consent:update"
CONSENT_REVOKE = "consent:revoke"

FACILITY_READ = "facility:read"
FACILITY_CREATE = "facility:create"
FACILITY_UPDATE = "facility:update"
FACILITY_DELETE = "facility:delete"

USER_READ = "user:read"
USER_CREATE = "user:create"
USER_UPDATE = "user:update"
USER_DELETE = "user:delete"
USER_ROLE_ASSIGN = "user:role_assign"

SYSTEM_CONFIG_READ = "system_config:read"
SYSTEM_CONFIG_UPDATE = "system_config:update"
AUDIT_LOG_READ = "audit_log:read"
COMPLIANCE_REPORT_READ = "compliance_report:read"

# emergency_access and break_glass, in resource:action form.
EMERGENCY_ACCESS = "emergency:access"
BREAK_GLASS = "emergency:break_glass"

# Either one authorizes an emergency override.
EMERGENCY_PERMISSIONS = (EMERGENCY_ACCESS, BREAK_GLASS)

HEALTHCARE_PERMISSIONS: dict[str, str] = {
    "PATIENT_READ": PATIENT_READ,
    "PATIENT_CREATE": PATIENT_CREATE,
    "PATIENT_UPDATE": PATIENT_UPDATE,
    "PATIENT_DELETE": PATIENT_DELETE,
    "PATIENT_EXPORT": PATIENT_EXPORT,
    "MEDICAL_RECORD_READ": MEDICAL_RECORD_READ,
    "MEDICAL_RECORD_CREATE": MEDICAL_RECORD_CREATE,
    "MEDICAL_RECORD_UPDATE": MEDICAL_RECORD_UPDATE,
    "MEDICAL_RECORD_DELETE": MEDICAL_RECORD_DELETE,
    "APPOINTMENT_READ": APPOINTMENT_READ,
    "APPOINTMENT_CREATE": APPOINTMENT_CREATE,
    "APPOINTMENT_UPDATE": APPOINTMENT_UPDATE,
    "APPOINTMENT_CANCEL": APPOINTMENT_CANCEL,
    "CONSENT_READ": CONSENT_READ,
    "CONSENT_CREATE": CONSENT_CREATE,
    "CONSENT_UPDATE": CONSENT_UPDATE,
    "CONSENT_REVOKE": CONSENT_REVOKE,
    "FACILITY_READ": FACILITY_READ,
    "FACILITY_CREATE": FACILITY_CREATE,
    "FACILITY_UPDATE": FACILITY_UPDATE,
    "FACILITY_DELETE": FACILITY_DELETE,
    "USER_READ": USER_READ,
    "USER_CREATE": USER_CREATE,
    "USER_UPDATE": USER_UPDATE,
    "USER_DELETE": USER_DELETE,
    "USER_ROLE_ASSIGN": USER_ROLE_ASSIGN,
    "SYSTEM_CONFIG_READ": SYSTEM_CONFIG_READ,
    "SYSTEM_CONFIG_UPDATE": SYSTEM_CONFIG_UPDATE,
    "AUDIT_LOG_READ": AUDIT_LOG_READ,
    "COMPLIANCE_REPORT_READ": COMPLIANCE_REPORT_READ,
    "EMERGENCY_ACCESS": EMERGENCY_ACCESS,
    "BREAK_GLASS": BREAK_GLASS,
}


@dataclass(frozen=True)
class RoleTemplate:
    """Built-in role definition seeded at bootstrap."""

    name: str
    description: str
    permissions: tuple[str, ...]
    priority: int


HEALTHCARE_ROLES: tuple[RoleTemplate, ...] = (
    RoleTemplate(
        name="system_admin",
        description="System Administrator with full access",
        permissions=tuple(HEALTHCARE_PERMISSIONS.values()),
        priority=100,
    ),
    RoleTemplate(
        name="compliance_officer",
        description="HIPAA Compliance Officer",
        permissions=(
            AUDIT_LOG_READ,
            COMPLIANCE_REPORT_READ,
            CONSENT_READ,
            CONSENT_UPDATE,
            PATIENT_READ,
        ),
        priority=90,
    ),
    RoleTemplate(
        name="facility_admin",
        description="Healthcare Facility Administrator",
        permissions=(
            FACILITY_READ,
            FACILITY_UPDATE,
            USER_READ,
            USER_CREATE,
            USER_UPDATE,
            USER_ROLE_ASSIGN,
            APPOINTMENT_READ,
            APPOINTMENT_CREATE,
            APPOINTMENT_UPDATE,
        ),
        priority=80,
    ),
    RoleTemplate(
        name="doctor",
        description="Healthcare Provider (Doctor)",
        permissions=(
            PATIENT_READ,
            MEDICAL_RECORD_READ,
            MEDICAL_RECORD_CREATE,
            MEDICAL_RECORD_UPDATE,
            APPOINTMENT_READ,
            APPOINTMENT_CREATE,
            APPOINTMENT_UPDATE,
            CONSENT_READ,
            CONSENT_CREATE,
        ),
        priority=70,
    ),
    RoleTemplate(
        name="nurse",
        description="Healthcare Provider (Nurse)",
        permissions=(
            PATIENT_READ,
            MEDICAL_RECORD_READ,
            MEDICAL_RECORD_UPDATE,
            APPOINTMENT_READ,
            APPOINTMENT_UPDATE,
            CONSENT_READ,
        ),
        priority=60,
    ),
    RoleTemplate(
        name="clinic_staff",
        description="Clinic Support Staff",
        permissions=(
            PATIENT_READ,
            APPOINTMENT_READ,
            APPOINTMENT_CREATE,
            APPOINTMENT_UPDATE,
            CONSENT_READ,
            CONSENT_CREATE,
        ),
        priority=50,
    ),
    RoleTemplate(
        name="patient",
        description="Patient User",
        permissions=(
            PATIENT_READ,
            MEDICAL_RECORD_READ,
            APPOINTMENT_READ,
            CONSENT_READ,
            CONSENT_UPDATE,
        ),
        priority=10,
    ),
)
