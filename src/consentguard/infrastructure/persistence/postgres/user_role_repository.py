"""PostgreSQL user role assignment repository implementation."""

from datetime import datetime

from psycopg import AsyncConnection

from consentguard.domain.entities import UserRoleAssignment, assignment_id

_COLUMNS = (
    "user_id, role_id, assigned_by, assigned_at, expires_at, is_active, removed_by, removed_at"
)


def _row_to_assignment(r: tuple) -> UserRoleAssignment:
    return UserRoleAssignment(
        user_id=r[0],
        role_id=r[1],
        assigned_by=r[2],
        assigned_at=r[3],
        expires_at=r[4],
        is_active=r[5],
        removed_by=r[6],
        removed_at=r[7],
    )


class PostgresUserRoleRepository:
    """User role repository implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get(self, user_id: str, role_id: str) -> UserRoleAssignment | None:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM user_roles WHERE id = %s",
            (assignment_id(user_id, role_id),),
        )
        r = await cur.fetchone()
        return _row_to_assignment(r) if r else None

    async def list_active_for_user(self, user_id: str) -> list[UserRoleAssignment]:
        """Active assignments; expiry is left to the caller to evaluate."""
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM user_roles WHERE user_id = %s AND is_active",
            (user_id,),
        )
        rows = await cur.fetchall()
        return [_row_to_assignment(r) for r in rows]

    async def upsert(self, assignment: UserRoleAssignment) -> UserRoleAssignment:
        """Create assignment, or reactivate it when it was removed."""
        await self._conn.execute(
            f"INSERT INTO user_roles (id, {_COLUMNS}) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s) "
            "ON CONFLICT (id) DO UPDATE SET assigned_by = EXCLUDED.assigned_by, "
            "assigned_at = EXCLUDED.assigned_at, expires_at = EXCLUDED.expires_at, "
            "is_active = EXCLUDED.is_active, removed_by = NULL, removed_at = NULL",
            (
                assignment.id,
                assignment.user_id,
                assignment.role_id,
                assignment.assigned_by,
                assignment.assigned_at,
                assignment.expires_at,
                assignment.is_active,
                assignment.removed_by,
                assignment.removed_at,
            ),
        )
        return assignment

    async def deactivate(
        self, user_id: str, role_id: str, removed_by: str, removed_at: datetime
    ) -> None:
        await self._conn.execute(
            "UPDATE user_roles SET is_active = false, removed_by = %s, removed_at = %s "
            "WHERE id = %s",
            (removed_by, removed_at, assignment_id(user_id, role_id)),
        )
