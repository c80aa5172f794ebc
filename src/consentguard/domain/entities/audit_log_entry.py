"""Audit log entry - append-only."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from consentguard.domain.value_objects import ActionResult, ActionType


@dataclass(frozen=True)
class Actor:
    user_id: str
    email: str | None = None


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit record."""

    id: str
    timestamp: datetime
    actor: Actor
    action: str
    resource_type: str
    resource_id: str
    action_type: ActionType
    action_result: ActionResult
    correlation_id: str
    request_id: str
    reason: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
