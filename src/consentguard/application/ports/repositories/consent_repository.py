"""Patient consent repository port."""

from datetime import datetime
from typing import Protocol

from consentguard.domain.entities import PatientConsent


class ConsentRepository(Protocol):
    """Port for the ``patient_consents`` collection."""

    async def get_by_id(self, consent_id: str) -> PatientConsent | None: ...

    async def list_granted_for_patient(
        self, patient_id: str, *, limit: int = 10
    ) -> list[PatientConsent]:
        """Granted consents, newest ``created_at`` first."""
        ...

    async def list_for_patient(self, patient_id: str) -> list[PatientConsent]: ...

    async def create(self, consent: PatientConsent) -> PatientConsent: ...

    async def revoke(
        self, consent_id: str, *, revoked_by: str, reason: str, revoked_at: datetime
    ) -> None: ...
