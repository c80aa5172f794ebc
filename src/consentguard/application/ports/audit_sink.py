"""Audit sink port - where components hand off audit events."""

from typing import Protocol

from consentguard.application.dto.audit_event import AuditEvent
from consentguard.domain.entities import Principal


class AuditSink(Protocol):
    def enqueue(self, event: AuditEvent, principal: Principal | None = None) -> bool:
        """Accept event for persistence; False when gating dropped it."""
        ...
