"""Compliance report use case."""

from collections.abc import Callable
from datetime import UTC, datetime

from consentguard.application.dto.report_dto import ComplianceReport, ComplianceStatus
from consentguard.application.ports import PermissionChecker, UnitOfWorkFactory
from consentguard.domain.catalog import COMPLIANCE_REPORT_READ
from consentguard.domain.exceptions import PermissionDenied, ValidationError
from consentguard.domain.value_objects import RiskLevel
from consentguard.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


def compliance_score(total: int, critical: int, high: int) -> int:
    return max(0, 100 - total * 10 - critical * 20 - high * 10)


def compliance_status(score: int) -> ComplianceStatus:
    if score >= 80:
        return ComplianceStatus.COMPLIANT
    if score >= 60:
        return ComplianceStatus.AT_RISK
    return ComplianceStatus.NON_COMPLIANT


def recommendations(total: int, critical: int, high: int) -> list[str]:
    result = []
    if critical > 0:
        result.append("Immediate action required: Investigate and resolve all critical violations")
    if high > 0:
        result.append("High priority: Address high-severity violations within 24 hours")
    if total > 10:
        result.append("Review and strengthen access controls and monitoring procedures")
    if not result:
        result.append("Maintain current compliance practices and continue monitoring")
    return result


class ComplianceReportUseCase:
    """Summarize audit activity and violations for a period."""

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        permission_checker: PermissionChecker,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._permission_checker = permission_checker
        self._clock = clock or (lambda: datetime.now(UTC))

    async def execute(self, actor_id: str, start: datetime, end: datetime) -> ComplianceReport:
        """Build report for [start, end]. Actor must hold compliance_report:read."""
        check = await self._permission_checker.has_permission(actor_id, COMPLIANCE_REPORT_READ)
        if not check.granted:
            raise PermissionDenied("User cannot read compliance reports")
        if start > end:
            raise ValidationError("Report period start must not be after its end")

        async with self._uow_factory() as uow:
            total_events = await uow.audit_log.count_between(start, end)
            violations = await uow.violations.list_between(start, end)

        total = len(violations)
        critical = sum(1 for v in violations if v.severity == RiskLevel.CRITICAL)
        high = sum(1 for v in violations if v.severity == RiskLevel.HIGH)
        score = compliance_score(total, critical, high)

        logger.info(
            "compliance_report_generated",
            audit_events=total_events,
            violations=total,
            score=score,
        )
        return ComplianceReport(
            report_date=self._clock(),
            period_start=start,
            period_end=end,
            total_audit_events=total_events,
            total_violations=total,
            critical_violations=critical,
            high_violations=high,
            compliance_score=score,
            status=compliance_status(score),
            recommendations=recommendations(total, critical, high),
        )
