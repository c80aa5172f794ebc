"""Create consent use case."""

from collections.abc import Callable
from datetime import UTC, datetime
from uuid import uuid4

from consentguard.application.dto.audit_event import AuditEvent
from consentguard.application.dto.consent_dto import ConsentCreateInput
from consentguard.application.ports import (
    AuditSink,
    Cipher,
    PermissionChecker,
    UnitOfWorkFactory,
)
from consentguard.domain.catalog import CONSENT_CREATE
from consentguard.domain.entities import PatientConsent
from consentguard.domain.exceptions import PermissionDenied, ValidationError
from consentguard.domain.value_objects import ActionType
from consentguard.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


def protect_field(cipher: Cipher, field_name: str, value: str | None) -> str | None:
    """Encrypt a sensitive field. The field is dropped when encryption is unavailable."""
    if value is None:
        return None
    if not cipher.available:
        logger.warning("consent_field_dropped", field=field_name, reason="cipher_unavailable")
        return None
    try:
        return cipher.encrypt(value)
    except Exception:
        logger.exception("consent_field_encryption_failed", field=field_name)
        return None


class CreateConsentUseCase:
    """Record a patient consent with encrypted signature fields."""

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        permission_checker: PermissionChecker,
        cipher: Cipher,
        audit: AuditSink,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._permission_checker = permission_checker
        self._cipher = cipher
        self._audit = audit
        self._clock = clock or (lambda: datetime.now(UTC))

    async def execute(self, actor_id: str, data: ConsentCreateInput) -> PatientConsent:
        """Create consent. Actor must hold consent:create."""
        check = await self._permission_checker.has_permission(actor_id, CONSENT_CREATE)
        if not check.granted:
            raise PermissionDenied("User cannot create patient consents")
        if not data.data_categories:
            raise ValidationError("Consent must cover at least one data category")

        now = self._clock()
        if data.expires_at is not None and data.expires_at <= now:
            raise ValidationError("Consent expiry must be in the future")

        consent = PatientConsent(
            id=f"consent_{uuid4().hex}",
            patient_id=data.patient_id,
            consent_type=data.consent_type,
            status=data.status,
            scope=data.scope,
            data_categories=list(data.data_categories),
            created_at=now,
            updated_at=now,
            created_by=actor_id,
            expires_at=data.expires_at,
            patient_signature=protect_field(
                self._cipher, "patient_signature", data.patient_signature
            ),
            witness_signature=protect_field(
                self._cipher, "witness_signature", data.witness_signature
            ),
        )

        async with self._uow_factory() as uow:
            await uow.consents.create(consent)

        self._audit.enqueue(
            AuditEvent(
                action="consent_management",
                resource_type="patient_consent",
                resource_id=consent.id,
                action_type=ActionType.CREATE,
                reason="New patient consent created",
                details={"patient_id": consent.patient_id},
            )
        )
        logger.info(
            "consent_created",
            consent_id=consent.id,
            patient_id=consent.patient_id,
            consent_type=consent.consent_type.value,
        )
        return consent
