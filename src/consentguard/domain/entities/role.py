"""Role entity for RBAC."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Role:
    """Role - named, ordered set of permission ids."""

    id: str
    name: str
    description: str
    created_at: datetime
    updated_at: datetime
    permissions: list[str] = field(default_factory=list)
    priority: int = 0
    is_active: bool = True
