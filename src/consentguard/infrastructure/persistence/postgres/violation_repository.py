"""PostgreSQL compliance violation and security alert repositories."""

from datetime import datetime

from psycopg import AsyncConnection

from consentguard.domain.entities import ComplianceViolation, SecurityAlert
from consentguard.domain.value_objects import RiskLevel, ViolationType


class PostgresViolationRepository:
    """Compliance violation repository implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def create(self, violation: ComplianceViolation) -> ComplianceViolation:
        await self._conn.execute(
            "INSERT INTO compliance_violations (id, type, severity, description, patient_id, "
            "actor_id, data_categories, timestamp, reviewed) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)",
            (
                violation.id,
                violation.type.value,
                violation.severity.value,
                violation.description,
                violation.patient_id,
                violation.actor_id,
                list(violation.data_categories),
                violation.timestamp,
                violation.reviewed,
            ),
        )
        return violation

    async def list_between(self, start: datetime, end: datetime) -> list[ComplianceViolation]:
        cur = await self._conn.execute(
            "SELECT id, type, severity, description, patient_id, actor_id, data_categories, "
            "timestamp, reviewed FROM compliance_violations "
            "WHERE timestamp >= %s AND timestamp <= %s ORDER BY timestamp",
            (start, end),
        )
        rows = await cur.fetchall()
        return [
            ComplianceViolation(
                id=r[0],
                type=ViolationType(r[1]),
                severity=RiskLevel(r[2]),
                description=r[3],
                patient_id=r[4],
                actor_id=r[5],
                data_categories=list(r[6] or []),
                timestamp=r[7],
                reviewed=r[8],
            )
            for r in rows
        ]


class PostgresAlertRepository:
    """Security alert repository implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def create(self, alert: SecurityAlert) -> SecurityAlert:
        await self._conn.execute(
            "INSERT INTO security_alerts (id, violation_id, type, severity, description, "
            "patient_id, actor_id, timestamp, acknowledged) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)",
            (
                alert.id,
                alert.violation_id,
                alert.type,
                alert.severity.value,
                alert.description,
                alert.patient_id,
                alert.actor_id,
                alert.timestamp,
                alert.acknowledged,
            ),
        )
        return alert
