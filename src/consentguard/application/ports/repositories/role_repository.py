"""Role repository port."""

from typing import Protocol

from consentguard.domain.entities import Role


class RoleRepository(Protocol):
    """Port for the ``roles`` collection."""

    async def get_by_id(self, role_id: str) -> Role | None: ...

    async def list_all(self, *, active_only: bool = False) -> list[Role]: ...

    async def count(self) -> int: ...

    async def upsert(self, role: Role) -> Role: ...

    async def create_batch(self, roles: list[Role]) -> None: ...

    async def set_active(self, role_id: str, is_active: bool) -> None: ...
