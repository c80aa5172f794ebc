"""Audit log repository port."""

from datetime import datetime
from typing import Protocol

from consentguard.domain.entities import AuditLogEntry


class AuditLogRepository(Protocol):
    """Port for the append-only ``audit_log`` collection."""

    async def create_batch(self, entries: list[AuditLogEntry]) -> None:
        """Insert all entries atomically."""
        ...

    async def count_between(self, start: datetime, end: datetime) -> int: ...
