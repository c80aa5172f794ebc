"""Alert channel port - notification for severe violations."""

from typing import Protocol

from consentguard.domain.entities import ComplianceViolation


class AlertChannel(Protocol):
    async def send_alert(self, violation: ComplianceViolation) -> None: ...
