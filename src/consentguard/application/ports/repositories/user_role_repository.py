"""User role assignment repository port."""

from datetime import datetime
from typing import Protocol

from consentguard.domain.entities import UserRoleAssignment


class UserRoleRepository(Protocol):
    """Port for the ``user_roles`` collection, keyed ``userId_roleId``."""

    async def get(self, user_id: str, role_id: str) -> UserRoleAssignment | None: ...

    async def list_active_for_user(self, user_id: str) -> list[UserRoleAssignment]: ...

    async def upsert(self, assignment: UserRoleAssignment) -> UserRoleAssignment: ...

    async def deactivate(
        self, user_id: str, role_id: str, removed_by: str, removed_at: datetime
    ) -> None: ...
