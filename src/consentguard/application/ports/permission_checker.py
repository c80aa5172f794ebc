"""Permission checker port - RBAC authorization."""

from collections.abc import Mapping
from typing import Any, Protocol

from consentguard.application.dto.verification import PermissionCheck


class PermissionChecker(Protocol):
    """Port for checking whether a user's roles grant a permission."""

    async def has_permission(
        self,
        user_id: str,
        permission_id: str,
        context: Mapping[str, Any] | None = None,
    ) -> PermissionCheck: ...
