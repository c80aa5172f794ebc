"""Audit record values."""

from enum import StrEnum


class ActionType(StrEnum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    ACCESS = "access"

    @classmethod
    def from_action(cls, action: str) -> "ActionType":
        """Map a permission action (``read``, ``create``, ``revoke``...) to an audit action type."""
        try:
            return cls(action)
        except ValueError:
            return cls.ACCESS


class ActionResult(StrEnum):
    SUCCESS = "success"
    FAILURE = "failure"


class AuditDurability(StrEnum):
    """What the audit pipeline does with a batch whose write failed."""

    BEST_EFFORT = "best_effort"  # discard the batch
    REQUEUE = "requeue"  # put the batch back at the queue head
