"""Compliance violation repository port."""

from datetime import datetime
from typing import Protocol

from consentguard.domain.entities import ComplianceViolation


class ViolationRepository(Protocol):
    """Port for the ``compliance_violations`` collection."""

    async def create(self, violation: ComplianceViolation) -> ComplianceViolation: ...

    async def list_between(
        self, start: datetime, end: datetime
    ) -> list[ComplianceViolation]: ...
