"""Get consent use case."""

from dataclasses import replace

from consentguard.application.dto.audit_event import AuditEvent
from consentguard.application.ports import (
    AuditSink,
    Cipher,
    PermissionChecker,
    UnitOfWorkFactory,
)
from consentguard.domain.catalog import CONSENT_READ
from consentguard.domain.entities import PatientConsent
from consentguard.domain.exceptions import NotFound, PermissionDenied
from consentguard.domain.value_objects import ActionType
from consentguard.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class GetConsentUseCase:
    """Get consent by id with signature fields decrypted."""

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        permission_checker: PermissionChecker,
        cipher: Cipher,
        audit: AuditSink,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._permission_checker = permission_checker
        self._cipher = cipher
        self._audit = audit

    async def execute(self, actor_id: str, consent_id: str) -> PatientConsent:
        check = await self._permission_checker.has_permission(actor_id, CONSENT_READ)
        if not check.granted:
            raise PermissionDenied("User does not have read access to consents")

        async with self._uow_factory() as uow:
            consent = await uow.consents.get_by_id(consent_id)
        if consent is None:
            raise NotFound("Consent", consent_id)

        self._audit.enqueue(
            AuditEvent(
                action="consent_management",
                resource_type="patient_consent",
                resource_id=consent_id,
                action_type=ActionType.READ,
                reason="Consent accessed for review",
            )
        )
        return replace(
            consent,
            patient_signature=self._reveal("patient_signature", consent.patient_signature),
            witness_signature=self._reveal("witness_signature", consent.witness_signature),
        )

    def _reveal(self, field_name: str, value: str | None) -> str | None:
        if value is None or not self._cipher.available:
            return None
        try:
            return self._cipher.decrypt(value)
        except Exception:
            logger.exception("consent_field_decryption_failed", field=field_name)
            return None
