"""Permission entity - ``resource:action`` grant."""

from dataclasses import dataclass, field
from datetime import datetime

from consentguard.domain.value_objects import Condition


@dataclass
class Permission:
    """Permission - immutable once created except for deactivation."""

    id: str
    name: str
    description: str
    resource: str
    action: str
    created_at: datetime
    updated_at: datetime
    conditions: dict[str, Condition] = field(default_factory=dict)
    is_active: bool = True

    @staticmethod
    def split_id(permission_id: str) -> tuple[str, str]:
        """``patient:read`` -> (``patient``, ``read``)."""
        resource, _, action = permission_id.partition(":")
        return resource, action
