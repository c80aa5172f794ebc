"""Security alert channel - stores an alert record for severe violations."""

from collections.abc import Callable
from datetime import UTC, datetime
from uuid import uuid4

from consentguard.application.ports import UnitOfWorkFactory
from consentguard.domain.entities import ComplianceViolation, SecurityAlert
from consentguard.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class StoredSecurityAlertChannel:
    """Persists a SecurityAlert in ``security_alerts`` and logs a warning.

    Notification fan-out (email, pager) reads from that collection.
    """

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._clock = clock or (lambda: datetime.now(UTC))

    async def send_alert(self, violation: ComplianceViolation) -> None:
        alert = SecurityAlert(
            id=f"alert_{uuid4().hex}",
            violation_id=violation.id,
            type=violation.type.value,
            severity=violation.severity,
            description=violation.description,
            patient_id=violation.patient_id,
            actor_id=violation.actor_id,
            timestamp=self._clock(),
        )
        async with self._uow_factory() as uow:
            await uow.alerts.create(alert)
        logger.warning(
            "security_alert",
            alert_id=alert.id,
            violation_id=violation.id,
            type=alert.type,
            severity=alert.severity.value,
        )
