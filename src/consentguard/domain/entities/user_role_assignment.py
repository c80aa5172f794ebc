"""User role assignment entity."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class UserRoleAssignment:
    """User holds role - many per user, union of permissions applies."""

    user_id: str
    role_id: str
    assigned_by: str
    assigned_at: datetime
    expires_at: datetime | None = None
    is_active: bool = True
    removed_by: str | None = None
    removed_at: datetime | None = None

    @property
    def id(self) -> str:
        return assignment_id(self.user_id, self.role_id)

    def is_effective(self, now: datetime) -> bool:
        """Active and not expired at ``now``."""
        if not self.is_active:
            return False
        return self.expires_at is None or self.expires_at > now


def assignment_id(user_id: str, role_id: str) -> str:
    return f"{user_id}_{role_id}"
