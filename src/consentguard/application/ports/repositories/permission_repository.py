"""Permission repository port."""

from typing import Protocol

from consentguard.domain.entities import Permission


class PermissionRepository(Protocol):
    """Port for the ``permissions`` collection."""

    async def get_by_id(self, permission_id: str) -> Permission | None: ...

    async def list_all(self, *, active_only: bool = False) -> list[Permission]: ...

    async def count(self) -> int: ...

    async def upsert(self, permission: Permission) -> Permission: ...

    async def create_batch(self, permissions: list[Permission]) -> None: ...

    async def set_active(self, permission_id: str, is_active: bool) -> None: ...
