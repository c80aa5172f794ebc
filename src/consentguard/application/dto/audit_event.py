"""Audit event DTO - input to the audit pipeline."""

from dataclasses import dataclass, field
from typing import Any

from consentguard.domain.value_objects import ActionResult, ActionType


@dataclass
class AuditEvent:
    """Security-relevant event before it is stamped into an AuditLogEntry.

    ``critical`` events are accepted from principals whose email is not yet
    verified; everything else from such principals is dropped at enqueue.
    """

    action: str
    resource_type: str
    resource_id: str
    action_type: ActionType
    action_result: ActionResult = ActionResult.SUCCESS
    reason: str | None = None
    critical: bool = False
    details: dict[str, Any] = field(default_factory=dict)
    correlation_id: str | None = None
