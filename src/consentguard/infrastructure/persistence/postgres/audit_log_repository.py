"""PostgreSQL audit log repository implementation."""

from datetime import datetime

from psycopg import AsyncConnection
from psycopg.types.json import Jsonb

from consentguard.domain.entities import AuditLogEntry


class PostgresAuditLogRepository:
    """Append-only audit log. No update or delete statements."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def create_batch(self, entries: list[AuditLogEntry]) -> None:
        """Insert entries in the surrounding transaction."""
        async with self._conn.cursor() as cur:
            await cur.executemany(
                "INSERT INTO audit_log (id, timestamp, user_id, user_email, action, "
                "resource_type, resource_id, action_type, action_result, correlation_id, "
                "request_id, reason, details) "
                "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)",
                [
                    (
                        e.id,
                        e.timestamp,
                        e.actor.user_id,
                        e.actor.email,
                        e.action,
                        e.resource_type,
                        e.resource_id,
                        e.action_type.value,
                        e.action_result.value,
                        e.correlation_id,
                        e.request_id,
                        e.reason,
                        Jsonb(e.details),
                    )
                    for e in entries
                ],
            )

    async def count_between(self, start: datetime, end: datetime) -> int:
        cur = await self._conn.execute(
            "SELECT count(*) FROM audit_log WHERE timestamp >= %s AND timestamp <= %s",
            (start, end),
        )
        r = await cur.fetchone()
        return r[0]
