"""PostgreSQL Unit of Work implementation."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import psycopg
from psycopg_pool import AsyncConnectionPool

from consentguard.domain.exceptions import StoreUnavailable
from consentguard.infrastructure.persistence.postgres.audit_log_repository import (
    PostgresAuditLogRepository,
)
from consentguard.infrastructure.persistence.postgres.consent_repository import (
    PostgresConsentRepository,
)
from consentguard.infrastructure.persistence.postgres.permission_repository import (
    PostgresPermissionRepository,
)
from consentguard.infrastructure.persistence.postgres.role_repository import (
    PostgresRoleRepository,
)
from consentguard.infrastructure.persistence.postgres.user_role_repository import (
    PostgresUserRoleRepository,
)
from consentguard.infrastructure.persistence.postgres.violation_repository import (
    PostgresAlertRepository,
    PostgresViolationRepository,
)


class PostgresUnitOfWork:
    """PostgreSQL Unit of Work - one connection, one transaction."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool
        self._conn: object | None = None
        self._conn_cm: object | None = None

    async def __aenter__(self) -> "PostgresUnitOfWork":
        self._conn_cm = self._pool.connection()
        self._conn = await self._conn_cm.__aenter__()
        self._permissions = PostgresPermissionRepository(self._conn)
        self._roles = PostgresRoleRepository(self._conn)
        self._user_roles = PostgresUserRoleRepository(self._conn)
        self._consents = PostgresConsentRepository(self._conn)
        self._audit_log = PostgresAuditLogRepository(self._conn)
        self._violations = PostgresViolationRepository(self._conn)
        self._alerts = PostgresAlertRepository(self._conn)
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        if exc_type and self._conn:
            await self._conn.rollback()
        if self._conn_cm:
            await self._conn_cm.__aexit__(exc_type, exc_val, exc_tb)

    @property
    def permissions(self) -> PostgresPermissionRepository:
        return self._permissions

    @property
    def roles(self) -> PostgresRoleRepository:
        return self._roles

    @property
    def user_roles(self) -> PostgresUserRoleRepository:
        return self._user_roles

    @property
    def consents(self) -> PostgresConsentRepository:
        return self._consents

    @property
    def audit_log(self) -> PostgresAuditLogRepository:
        return self._audit_log

    @property
    def violations(self) -> PostgresViolationRepository:
        return self._violations

    @property
    def alerts(self) -> PostgresAlertRepository:
        return self._alerts

    async def commit(self) -> None:
        if self._conn:
            await self._conn.commit()

    async def rollback(self) -> None:
        if self._conn:
            await self._conn.rollback()


def create_uow_factory(pool: AsyncConnectionPool) -> object:
    """Create UnitOfWork factory (async context manager).

    Driver and pool errors surface as ``StoreUnavailable``.
    """

    @asynccontextmanager
    async def factory() -> AsyncIterator[PostgresUnitOfWork]:
        try:
            async with PostgresUnitOfWork(pool) as uow:
                try:
                    yield uow
                    await uow.commit()
                except BaseException:
                    await uow.rollback()
                    raise
        except psycopg.Error as exc:
            raise StoreUnavailable(str(exc)) from exc

    return factory
