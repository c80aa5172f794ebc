"""Security alert repository port."""

from typing import Protocol

from consentguard.domain.entities import SecurityAlert


class AlertRepository(Protocol):
    """Port for the ``security_alerts`` collection."""

    async def create(self, alert: SecurityAlert) -> SecurityAlert: ...
