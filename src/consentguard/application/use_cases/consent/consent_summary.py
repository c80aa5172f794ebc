"""Consent summary use case."""

from collections.abc import Callable
from datetime import UTC, datetime

from consentguard.application.dto.consent_dto import ConsentSummary
from consentguard.application.ports import PermissionChecker, UnitOfWorkFactory
from consentguard.domain.catalog import CONSENT_READ
from consentguard.domain.exceptions import PermissionDenied
from consentguard.domain.value_objects import ConsentStatus


class ConsentSummaryUseCase:
    """Count a patient's active, expired and revoked consents."""

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        permission_checker: PermissionChecker,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._permission_checker = permission_checker
        self._clock = clock or (lambda: datetime.now(UTC))

    async def execute(self, actor_id: str, patient_id: str) -> ConsentSummary:
        check = await self._permission_checker.has_permission(actor_id, CONSENT_READ)
        if not check.granted:
            raise PermissionDenied("User does not have read access to consents")

        async with self._uow_factory() as uow:
            consents = await uow.consents.list_for_patient(patient_id)

        now = self._clock()
        summary = ConsentSummary(patient_id=patient_id)
        for consent in consents:
            if consent.is_active(now):
                summary.active_consents += 1
                last = summary.last_consent_date
                if last is None or consent.created_at > last:
                    summary.last_consent_date = consent.created_at
                if consent.expires_at is not None and (
                    summary.next_expiry_date is None
                    or consent.expires_at < summary.next_expiry_date
                ):
                    summary.next_expiry_date = consent.expires_at
            elif consent.status == ConsentStatus.REVOKED:
                summary.revoked_consents += 1
            elif consent.status in (ConsentStatus.EXPIRED, ConsentStatus.GRANTED):
                # Granted but past expires_at counts as expired.
                summary.expired_consents += 1
        return summary
