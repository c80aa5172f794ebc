"""Revoke consent use case."""

from consentguard.application.ports import PermissionChecker
from consentguard.application.services.consent_store import ConsentStore
from consentguard.domain.catalog import CONSENT_REVOKE, CONSENT_UPDATE
from consentguard.domain.exceptions import PermissionDenied, ValidationError


class RevokeConsentUseCase:
    """Revoke a patient consent. Revocation is terminal."""

    def __init__(
        self,
        permission_checker: PermissionChecker,
        consent_store: ConsentStore,
    ) -> None:
        self._permission_checker = permission_checker
        self._consent_store = consent_store

    async def execute(self, actor_id: str, consent_id: str, reason: str) -> None:
        """Actor must hold consent:revoke or consent:update."""
        for permission_id in (CONSENT_REVOKE, CONSENT_UPDATE):
            check = await self._permission_checker.has_permission(actor_id, permission_id)
            if check.granted:
                break
        else:
            raise PermissionDenied("User cannot revoke patient consents")
        if not reason.strip():
            raise ValidationError("Revocation reason is required")

        await self._consent_store.revoke_consent(consent_id, reason, actor_id)
