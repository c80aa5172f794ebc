"""Violation escalator - persists violations, alerts on high and critical."""

from consentguard.application.ports import AlertChannel, UnitOfWorkFactory
from consentguard.domain.entities import ComplianceViolation
from consentguard.infrastructure.observability import metrics
from consentguard.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class ViolationEscalator:
    """Records compliance violations without ever failing the caller."""

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        alert_channel: AlertChannel | None = None,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._alert_channel = alert_channel

    async def record(self, violation: ComplianceViolation) -> bool:
        """Persist violation and escalate it. Returns False if it was not stored."""
        metrics.violations_recorded.labels(
            type=violation.type.value, severity=violation.severity.value
        ).inc()
        logger.warning(
            "compliance_violation",
            violation_id=violation.id,
            type=violation.type.value,
            severity=violation.severity.value,
            patient_id=violation.patient_id,
            actor_id=violation.actor_id,
        )

        stored = True
        try:
            async with self._uow_factory() as uow:
                await uow.violations.create(violation)
        except Exception:
            logger.exception("violation_persist_failed", violation_id=violation.id)
            stored = False

        if violation.severity.is_elevated and self._alert_channel is not None:
            try:
                await self._alert_channel.send_alert(violation)
            except Exception:
                logger.exception("security_alert_failed", violation_id=violation.id)
        return stored
