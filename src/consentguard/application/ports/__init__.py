"""Application ports - interfaces for external adapters."""

from consentguard.application.ports.alert_channel import AlertChannel
from consentguard.application.ports.audit_sink import AuditSink
from consentguard.application.ports.cipher import Cipher
from consentguard.application.ports.identity_provider import (
    IdentityProvider,
    PrincipalListener,
)
from consentguard.application.ports.permission_checker import PermissionChecker
from consentguard.application.ports.unit_of_work import UnitOfWork, UnitOfWorkFactory

__all__ = [
    "AlertChannel",
    "AuditSink",
    "Cipher",
    "IdentityProvider",
    "PermissionChecker",
    "PrincipalListener",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
