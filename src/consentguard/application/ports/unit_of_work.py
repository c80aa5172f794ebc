"""Unit of Work port - transactional boundary over the document store."""

from contextlib import AbstractAsyncContextManager
from typing import Protocol

from consentguard.application.ports.repositories import (
    AlertRepository,
    AuditLogRepository,
    ConsentRepository,
    PermissionRepository,
    RoleRepository,
    UserRoleRepository,
    ViolationRepository,
)


class UnitOfWork(Protocol):
    """Unit of Work - manages transaction and repository access."""

    @property
    def permissions(self) -> PermissionRepository: ...

    @property
    def roles(self) -> RoleRepository: ...

    @property
    def user_roles(self) -> UserRoleRepository: ...

    @property
    def consents(self) -> ConsentRepository: ...

    @property
    def audit_log(self) -> AuditLogRepository: ...

    @property
    def violations(self) -> ViolationRepository: ...

    @property
    def alerts(self) -> AlertRepository: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class UnitOfWorkFactory(Protocol):
    """Factory for UnitOfWork instances, used as ``async with factory() as uow``."""

    def __call__(self) -> AbstractAsyncContextManager[UnitOfWork]: ...
