"""PostgreSQL permission repository implementation."""

from psycopg import AsyncConnection
from psycopg.types.json import Jsonb

from consentguard.domain.entities import Permission
from consentguard.domain.value_objects.condition import (
    conditions_from_document,
    conditions_to_document,
)

_COLUMNS = "id, name, description, resource, action, conditions, is_active, created_at, updated_at"


def _row_to_permission(r: tuple) -> Permission:
    return Permission(
        id=r[0],
        name=r[1],
        description=r[2],
        resource=r[3],
        action=r[4],
        conditions=conditions_from_document(r[5]),
        is_active=r[6],
        created_at=r[7],
        updated_at=r[8],
    )


class PostgresPermissionRepository:
    """Permission repository implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_id(self, permission_id: str) -> Permission | None:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM permissions WHERE id = %s",
            (permission_id,),
        )
        r = await cur.fetchone()
        return _row_to_permission(r) if r else None

    async def list_all(self, *, active_only: bool = False) -> list[Permission]:
        where = " WHERE is_active" if active_only else ""
        cur = await self._conn.execute(f"SELECT {_COLUMNS} FROM permissions{where} ORDER BY id")
        rows = await cur.fetchall()
        return [_row_to_permission(r) for r in rows]

    async def count(self) -> int:
        cur = await self._conn.execute("SELECT count(*) FROM permissions")
        r = await cur.fetchone()
        return r[0]

    async def upsert(self, permission: Permission) -> Permission:
        """Insert permission or replace its definition."""
        await self._conn.execute(
            f"INSERT INTO permissions ({_COLUMNS}) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s) "
            "ON CONFLICT (id) DO UPDATE SET name = EXCLUDED.name, "
            "description = EXCLUDED.description, conditions = EXCLUDED.conditions, "
            "is_active = EXCLUDED.is_active, updated_at = EXCLUDED.updated_at",
            self._params(permission),
        )
        return permission

    async def create_batch(self, permissions: list[Permission]) -> None:
        """Insert permissions, skipping ids that already exist."""
        async with self._conn.cursor() as cur:
            await cur.executemany(
                f"INSERT INTO permissions ({_COLUMNS}) "
                "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s) ON CONFLICT (id) DO NOTHING",
                [self._params(p) for p in permissions],
            )

    async def set_active(self, permission_id: str, is_active: bool) -> None:
        await self._conn.execute(
            "UPDATE permissions SET is_active = %s, updated_at = now() WHERE id = %s",
            (is_active, permission_id),
        )

    @staticmethod
    def _params(p: Permission) -> tuple:
        return (
            p.id,
            p.name,
            p.description,
            p.resource,
            p.action,
            Jsonb(conditions_to_document(p.conditions)),
            p.is_active,
            p.created_at,
            p.updated_at,
        )
