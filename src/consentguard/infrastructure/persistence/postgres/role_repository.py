"""PostgreSQL role repository implementation."""

from psycopg import AsyncConnection

from consentguard.domain.entities import Role

_COLUMNS = "id, name, description, permissions, priority, is_active, created_at, updated_at"


def _row_to_role(r: tuple) -> Role:
    return Role(
        id=r[0],
        name=r[1],
        description=r[2],
        permissions=list(r[3] or []),
        priority=r[4],
        is_active=r[5],
        created_at=r[6],
        updated_at=r[7],
    )


class PostgresRoleRepository:
    """Role repository implementation. Permission ids are kept in order in a text array."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_id(self, role_id: str) -> Role | None:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM roles WHERE id = %s",
            (role_id,),
        )
        r = await cur.fetchone()
        return _row_to_role(r) if r else None

    async def list_all(self, *, active_only: bool = False) -> list[Role]:
        where = " WHERE is_active" if active_only else ""
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM roles{where} ORDER BY priority DESC, id"
        )
        rows = await cur.fetchall()
        return [_row_to_role(r) for r in rows]

    async def count(self) -> int:
        cur = await self._conn.execute("SELECT count(*) FROM roles")
        r = await cur.fetchone()
        return r[0]

    async def upsert(self, role: Role) -> Role:
        await self._conn.execute(
            f"INSERT INTO roles ({_COLUMNS}) VALUES (%s, %s, %s, %s, %s, %s, %s, %s) "
            "ON CONFLICT (id) DO UPDATE SET name = EXCLUDED.name, "
            "description = EXCLUDED.description, permissions = EXCLUDED.permissions, "
            "priority = EXCLUDED.priority, is_active = EXCLUDED.is_active, "
            "updated_at = EXCLUDED.updated_at",
            self._params(role),
        )
        return role

    async def create_batch(self, roles: list[Role]) -> None:
        async with self._conn.cursor() as cur:
            await cur.executemany(
                f"INSERT INTO roles ({_COLUMNS}) VALUES (%s, %s, %s, %s, %s, %s, %s, %s) "
                "ON CONFLICT (id) DO NOTHING",
                [self._params(r) for r in roles],
            )

    async def set_active(self, role_id: str, is_active: bool) -> None:
        await self._conn.execute(
            "UPDATE roles SET is_active = %s, updated_at = now() WHERE id = %s",
            (is_active, role_id),
        )

    @staticmethod
    def _params(r: Role) -> tuple:
        return (
            r.id,
            r.name,
            r.description,
            list(r.permissions),
            r.priority,
            r.is_active,
            r.created_at,
            r.updated_at,
        )
