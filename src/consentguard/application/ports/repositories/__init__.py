"""Repository ports."""

from consentguard.application.ports.repositories.alert_repository import AlertRepository
from consentguard.application.ports.repositories.audit_log_repository import (
    AuditLogRepository,
)
from consentguard.application.ports.repositories.consent_repository import (
    ConsentRepository,
)
from consentguard.application.ports.repositories.permission_repository import (
    PermissionRepository,
)
from consentguard.application.ports.repositories.role_repository import RoleRepository
from consentguard.application.ports.repositories.user_role_repository import (
    UserRoleRepository,
)
from consentguard.application.ports.repositories.violation_repository import (
    ViolationRepository,
)

__all__ = [
    "AlertRepository",
    "AuditLogRepository",
    "ConsentRepository",
    "PermissionRepository",
    "RoleRepository",
    "UserRoleRepository",
    "ViolationRepository",
]
