"""Permission catalog - role/permission definitions and per-user role cache."""

from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from consentguard.application.dto.audit_event import AuditEvent
from consentguard.application.dto.verification import PermissionCheck
from consentguard.application.ports import AuditSink, UnitOfWorkFactory
from consentguard.domain.catalog import HEALTHCARE_PERMISSIONS, HEALTHCARE_ROLES
from consentguard.domain.entities import Permission, Role, UserRoleAssignment, assignment_id
from consentguard.domain.exceptions import InvalidRole, NotFound
from consentguard.domain.value_objects import ActionResult, ActionType, Condition
from consentguard.domain.value_objects.condition import conditions_met
from consentguard.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

NO_ROLES = "no roles assigned"
NOT_IN_ROLES = "permission not found in user roles"


class PermissionCatalog:
    """In-memory role and permission maps over the document store.

    User role assignments are cached per user without a TTL; every
    assignment change invalidates the affected user explicitly.
    """

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        audit: AuditSink | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._audit = audit
        self._clock = clock or (lambda: datetime.now(UTC))
        self._permissions: dict[str, Permission] = {}
        self._roles: dict[str, Role] = {}
        self._user_roles: dict[str, list[UserRoleAssignment]] = {}

    # --- bootstrap ---

    async def load_or_bootstrap(self) -> None:
        """Seed the built-in catalog once, then load it into memory."""
        async with self._uow_factory() as uow:
            if await uow.permissions.count() == 0:
                await uow.permissions.create_batch(self._default_permissions())
                logger.info("default_permissions_created", count=len(HEALTHCARE_PERMISSIONS))
            if await uow.roles.count() == 0:
                await uow.roles.create_batch(self._default_roles())
                logger.info("default_roles_created", count=len(HEALTHCARE_ROLES))
        await self._load()

    async def _load(self) -> None:
        async with self._uow_factory() as uow:
            permissions = await uow.permissions.list_all(active_only=True)
            roles = await uow.roles.list_all(active_only=True)

        # Runtime predicates are not persisted; keep them across reloads.
        predicates = {pid: p.conditions for pid, p in self._permissions.items() if p.conditions}
        self._permissions = {p.id: p for p in permissions}
        for pid, conditions in predicates.items():
            if pid in self._permissions:
                self._permissions[pid].conditions = {
                    **self._permissions[pid].conditions,
                    **conditions,
                }
        self._roles = {r.id: r for r in roles}
        logger.info(
            "catalog_loaded",
            permissions=len(self._permissions),
            roles=len(self._roles),
        )

    def _default_permissions(self) -> list[Permission]:
        now = self._clock()
        permissions = []
        for name, permission_id in HEALTHCARE_PERMISSIONS.items():
            resource, action = Permission.split_id(permission_id)
            permissions.append(
                Permission(
                    id=permission_id,
                    name=name,
                    description=f"Permission to {action} {resource}",
                    resource=resource,
                    action=action,
                    created_at=now,
                    updated_at=now,
                )
            )
        return permissions

    def _default_roles(self) -> list[Role]:
        now = self._clock()
        return [
            Role(
                id=template.name,
                name=template.name,
                description=template.description,
                permissions=list(template.permissions),
                priority=template.priority,
                created_at=now,
                updated_at=now,
            )
            for template in HEALTHCARE_ROLES
        ]

    # --- checks ---

    async def has_permission(
        self,
        user_id: str,
        permission_id: str,
        context: Mapping[str, Any] | None = None,
    ) -> PermissionCheck:
        """Check whether any of the user's active roles grants the permission."""
        role_ids = await self.get_user_roles(user_id)
        if not role_ids:
            return PermissionCheck(granted=False, reason=NO_ROLES)

        permission = self._permissions.get(permission_id)
        if permission is None:
            # Unknown or deactivated permissions grant nothing.
            return PermissionCheck(granted=False, reason=NOT_IN_ROLES)

        conditions = permission.conditions
        for role_id in role_ids:
            role = self._roles.get(role_id)
            if role is None or not role.is_active or permission_id not in role.permissions:
                continue
            if conditions and not conditions_met(conditions, context or {}):
                # Another role may still satisfy the permission.
                continue
            return PermissionCheck(granted=True, conditions=dict(conditions))

        return PermissionCheck(granted=False, reason=NOT_IN_ROLES)

    async def can_perform_action(
        self,
        user_id: str,
        resource: str,
        action: str,
        context: Mapping[str, Any] | None = None,
    ) -> PermissionCheck:
        return await self.has_permission(user_id, f"{resource}:{action}", context)

    async def get_user_roles(self, user_id: str) -> list[str]:
        """Role ids from the user's active, non-expired assignments."""
        assignments = self._user_roles.get(user_id)
        if assignments is None:
            async with self._uow_factory() as uow:
                assignments = await uow.user_roles.list_active_for_user(user_id)
            self._user_roles[user_id] = assignments

        now = self._clock()
        return [a.role_id for a in assignments if a.is_effective(now)]

    async def get_user_permissions(self, user_id: str) -> set[str]:
        permissions: set[str] = set()
        for role_id in await self.get_user_roles(user_id):
            role = self._roles.get(role_id)
            if role and role.is_active:
                permissions.update(p for p in role.permissions if p in self._permissions)
        return permissions

    def invalidate_user(self, user_id: str) -> None:
        self._user_roles.pop(user_id, None)

    # --- assignments ---

    async def assign_role(
        self,
        user_id: str,
        role_id: str,
        assigned_by: str,
        expires_at: datetime | None = None,
    ) -> UserRoleAssignment:
        """Assign role to user. Role must exist and be active."""
        self._require_active_role(role_id)
        assignment = UserRoleAssignment(
            user_id=user_id,
            role_id=role_id,
            assigned_by=assigned_by,
            assigned_at=self._clock(),
            expires_at=expires_at,
        )
        try:
            async with self._uow_factory() as uow:
                await uow.user_roles.upsert(assignment)
        except Exception:
            self._audit_assignment(
                assignment.id,
                ActionType.CREATE,
                ActionResult.FAILURE,
                f"Role assignment by {assigned_by} failed",
            )
            logger.exception("role_assignment_failed", user_id=user_id, role_id=role_id)
            raise
        finally:
            self.invalidate_user(user_id)

        self._audit_assignment(
            assignment.id,
            ActionType.CREATE,
            ActionResult.SUCCESS,
            f"Role assignment by {assigned_by}",
        )
        logger.info("role_assigned", user_id=user_id, role_id=role_id)
        return assignment

    async def remove_role(self, user_id: str, role_id: str, removed_by: str) -> None:
        """Deactivate the user's assignment of role."""
        self._require_active_role(role_id)
        resource_id = assignment_id(user_id, role_id)
        try:
            async with self._uow_factory() as uow:
                existing = await uow.user_roles.get(user_id, role_id)
                if existing is None:
                    raise NotFound("Role assignment", resource_id)
                await uow.user_roles.deactivate(user_id, role_id, removed_by, self._clock())
        except NotFound:
            raise
        except Exception:
            self._audit_assignment(
                resource_id,
                ActionType.UPDATE,
                ActionResult.FAILURE,
                f"Role removal by {removed_by} failed",
            )
            logger.exception("role_removal_failed", user_id=user_id, role_id=role_id)
            raise
        finally:
            self.invalidate_user(user_id)

        self._audit_assignment(
            resource_id,
            ActionType.UPDATE,
            ActionResult.SUCCESS,
            f"Role removal by {removed_by}",
        )
        logger.info("role_removed", user_id=user_id, role_id=role_id)

    def _require_active_role(self, role_id: str) -> Role:
        role = self._roles.get(role_id)
        if role is None or not role.is_active:
            raise InvalidRole(role_id)
        return role

    def _audit_assignment(
        self, resource_id: str, action_type: ActionType, result: ActionResult, reason: str
    ) -> None:
        if self._audit is None:
            return
        self._audit.enqueue(
            AuditEvent(
                action="role_assignment",
                resource_type="user_role",
                resource_id=resource_id,
                action_type=action_type,
                action_result=result,
                reason=reason,
            )
        )

    # --- administration ---

    async def create_permission(
        self,
        resource: str,
        action: str,
        description: str,
        conditions: Mapping[str, Condition] | None = None,
        name: str | None = None,
    ) -> Permission:
        """Create a custom permission ``resource:action``."""
        now = self._clock()
        permission = Permission(
            id=f"{resource}:{action}",
            name=name or f"{resource}_{action}".upper(),
            description=description,
            resource=resource,
            action=action,
            conditions=dict(conditions or {}),
            created_at=now,
            updated_at=now,
        )
        async with self._uow_factory() as uow:
            await uow.permissions.upsert(permission)
        self._permissions[permission.id] = permission
        logger.info("permission_created", permission_id=permission.id)
        return permission

    async def create_role(
        self,
        name: str,
        description: str,
        permissions: list[str],
        priority: int = 0,
    ) -> Role:
        """Create a custom role; the role id is its name."""
        unknown = [p for p in permissions if p not in self._permissions]
        if unknown:
            raise NotFound("Permission", ", ".join(unknown))
        now = self._clock()
        role = Role(
            id=name,
            name=name,
            description=description,
            permissions=list(dict.fromkeys(permissions)),
            priority=priority,
            created_at=now,
            updated_at=now,
        )
        async with self._uow_factory() as uow:
            await uow.roles.upsert(role)
        self._roles[role.id] = role
        logger.info("role_created", role_id=role.id)
        return role

    async def deactivate_role(self, role_id: str) -> None:
        if role_id not in self._roles:
            raise NotFound("Role", role_id)
        async with self._uow_factory() as uow:
            await uow.roles.set_active(role_id, False)
        self._roles[role_id].is_active = False
        logger.info("role_deactivated", role_id=role_id)

    async def deactivate_permission(self, permission_id: str) -> None:
        if permission_id not in self._permissions:
            raise NotFound("Permission", permission_id)
        async with self._uow_factory() as uow:
            await uow.permissions.set_active(permission_id, False)
        self._permissions.pop(permission_id)
        logger.info("permission_deactivated", permission_id=permission_id)

    async def refresh(self) -> None:
        """Drop every cache and reload definitions from the store."""
        self._user_roles.clear()
        await self._load()

    def all_permissions(self) -> list[Permission]:
        return list(self._permissions.values())

    def all_roles(self) -> list[Role]:
        return list(self._roles.values())

    def permission_exists(self, permission_id: str) -> bool:
        return permission_id in self._permissions

    def role_exists(self, role_id: str) -> bool:
        return role_id in self._roles
