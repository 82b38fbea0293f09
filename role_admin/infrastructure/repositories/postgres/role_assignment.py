"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/role_assignment.py
============================================================
Class: PostgresRoleAssignmentRepository

Responsibilities:
- Persistir asignaciones de rol en PostgreSQL (tabla user_roles, SQL crudo).
- Ejecutar el check-and-set del guard en UNA transacción:
    advisory lock -> snapshot (fila FOR UPDATE + conteo de owners) -> check -> write.
- Reintentar la transacción completa ante errores transitorios (tenacity).

Collaborators:
- psycopg_pool.ConnectionPool
- infrastructure.services.retry (backoff + clasificación DB-aware)
- crosscutting.exceptions.DatabaseError
- crosscutting.logger.logger
- Tabla: user_roles(user_id PK, role, assigned_by, created_at, updated_at)

Constraints / Notes:
- Repo puro: NO aplica reglas; evalúa el check que recibe dentro de la transacción.
- El advisory lock serializa escrituras guardadas entre procesos: dos demotes
  concurrentes de los dos últimos owners nunca ven ambos owner_count=2.
- Todas las queries parametrizadas; orden determinístico.
============================================================
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional
from uuid import UUID

from psycopg_pool import ConnectionPool

from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger
from ....domain.entities import Role, RoleAssignment
from ....domain.repositories import GuardedWrite
from ....domain.role_policy import (
    RoleChangeVerdict,
    RoleCheck,
    RoleSnapshot,
    VerdictKind,
)
from ...services.retry import create_retry_decorator

# Clave fija del advisory lock de la tabla user_roles ("ROLE" en ASCII).
_ADVISORY_LOCK_KEY = 0x524F4C45

_COLUMNS = "user_id, role, assigned_by, created_at, updated_at"


def _to_assignment(row: tuple) -> RoleAssignment:
    user_id, role, assigned_by, created_at, updated_at = row
    return RoleAssignment(
        user_id=user_id,
        role=Role(role),
        assigned_by=assigned_by,
        created_at=created_at,
        updated_at=updated_at,
    )


class PostgresRoleAssignmentRepository:
    """Repositorio PostgreSQL para user_roles."""

    # =========================================================
    # SQL Constantes (Privadas)
    # =========================================================
    _SQL_LOCK = "SELECT pg_advisory_xact_lock(%s)"

    _SQL_GET = f"SELECT {_COLUMNS} FROM user_roles WHERE user_id = %s"

    _SQL_GET_FOR_UPDATE = _SQL_GET + " FOR UPDATE"

    _SQL_COUNT_ROLE = "SELECT COUNT(*) FROM user_roles WHERE role = %s"

    _SQL_COUNT_ALL = "SELECT role, COUNT(*) FROM user_roles GROUP BY role"

    _SQL_UPSERT = f"""
        INSERT INTO user_roles (user_id, role, assigned_by)
        VALUES (%s, %s, %s)
        ON CONFLICT (user_id)
        DO UPDATE SET role = EXCLUDED.role,
                      assigned_by = EXCLUDED.assigned_by,
                      updated_at = now()
        RETURNING {_COLUMNS}
    """

    _SQL_DELETE = "DELETE FROM user_roles WHERE user_id = %s"

    _SQL_LIST_BY_ROLE = f"""
        SELECT {_COLUMNS}
        FROM user_roles
        WHERE role = %s
        ORDER BY created_at ASC, user_id ASC
        LIMIT %s OFFSET %s
    """

    def __init__(self, pool: Optional[ConnectionPool] = None):
        # Pool inyectable para tests. En prod se obtiene por factory global.
        self._pool = pool
        self._retrying: Optional[Callable] = None

    # =========================================================
    # Helpers (DRY + errores consistentes)
    # =========================================================
    def _get_pool(self) -> ConnectionPool:
        """Pool lazy-load."""
        if self._pool is not None:
            return self._pool
        from ...db.pool import get_pool

        return get_pool()

    def _retry(self, func: Callable) -> Callable:
        if self._retrying is None:
            self._retrying = create_retry_decorator()
        return self._retrying(func)

    def _fetchall(
        self, *, query: str, params: Iterable[object], context_msg: str, extra: dict
    ) -> list[tuple]:
        try:
            pool = self._get_pool()
            with pool.connection() as conn:
                return conn.execute(query, tuple(params)).fetchall()
        except Exception as exc:
            logger.exception(context_msg, extra={**extra, "error": str(exc)})
            raise DatabaseError(f"{context_msg}: {exc}", original_error=exc) from exc

    def _fetchone(
        self, *, query: str, params: Iterable[object], context_msg: str, extra: dict
    ) -> tuple | None:
        try:
            pool = self._get_pool()
            with pool.connection() as conn:
                return conn.execute(query, tuple(params)).fetchone()
        except Exception as exc:
            logger.exception(context_msg, extra={**extra, "error": str(exc)})
            raise DatabaseError(f"{context_msg}: {exc}", original_error=exc) from exc

    def _run_guarded(
        self,
        user_id: UUID,
        check: RoleCheck,
        write: Callable[[object, RoleChangeVerdict, Optional[RoleAssignment]], GuardedWrite],
    ) -> GuardedWrite:
        """Una transacción: lock -> snapshot -> check -> write (o nada)."""
        pool = self._get_pool()
        with pool.connection() as conn:
            with conn.transaction():
                conn.execute(self._SQL_LOCK, (_ADVISORY_LOCK_KEY,))
                row = conn.execute(self._SQL_GET_FOR_UPDATE, (user_id,)).fetchone()
                (owner_count,) = conn.execute(
                    self._SQL_COUNT_ROLE, (Role.OWNER.value,)
                ).fetchone()

                previous = _to_assignment(row) if row else None
                snapshot = RoleSnapshot(
                    user_id=user_id, current=previous, owner_count=int(owner_count)
                )
                verdict = check(snapshot)
                return write(conn, verdict, previous)

    def _guarded(
        self,
        user_id: UUID,
        check: RoleCheck,
        write: Callable[[object, RoleChangeVerdict, Optional[RoleAssignment]], GuardedWrite],
        *,
        context_msg: str,
    ) -> GuardedWrite:
        try:
            return self._retry(self._run_guarded)(user_id, check, write)
        except Exception as exc:
            logger.exception(
                context_msg, extra={"user_id": str(user_id), "error": str(exc)}
            )
            raise DatabaseError(f"{context_msg}: {exc}", original_error=exc) from exc

    # =========================================================
    # Lecturas
    # =========================================================
    def ping(self) -> bool:
        """Chequeo trivial de conectividad."""
        try:
            pool = self._get_pool()
            with pool.connection() as conn:
                conn.execute("SELECT 1")
            return True
        except Exception as exc:
            logger.exception(
                "PostgresRoleAssignmentRepository: ping failed",
                extra={"error": str(exc)},
            )
            raise DatabaseError(f"Ping failed: {exc}", original_error=exc) from exc

    def get_assignment(self, user_id: UUID) -> Optional[RoleAssignment]:
        row = self._fetchone(
            query=self._SQL_GET,
            params=[user_id],
            context_msg="PostgresRoleAssignmentRepository: Failed to get assignment",
            extra={"user_id": str(user_id)},
        )
        return _to_assignment(row) if row else None

    def count_by_role(self, role: Role) -> int:
        row = self._fetchone(
            query=self._SQL_COUNT_ROLE,
            params=[role.value],
            context_msg="PostgresRoleAssignmentRepository: Failed to count role",
            extra={"role": role.value},
        )
        return int(row[0]) if row else 0

    def count_all_by_role(self) -> Dict[Role, int]:
        rows = self._fetchall(
            query=self._SQL_COUNT_ALL,
            params=[],
            context_msg="PostgresRoleAssignmentRepository: Failed to count roles",
            extra={},
        )
        counts = {role: 0 for role in Role}
        for role, count in rows:
            parsed = Role.parse(role)
            if parsed is not None:
                counts[parsed] = int(count)
        return counts

    def list_by_role(
        self, role: Role, *, limit: int = 50, offset: int = 0
    ) -> List[RoleAssignment]:
        if limit <= 0:
            return []
        rows = self._fetchall(
            query=self._SQL_LIST_BY_ROLE,
            params=[role.value, limit, max(0, offset)],
            context_msg="PostgresRoleAssignmentRepository: Failed to list by role",
            extra={"role": role.value, "limit": limit, "offset": offset},
        )
        return [_to_assignment(row) for row in rows]

    # =========================================================
    # Escrituras guardadas
    # =========================================================
    def upsert_guarded(
        self,
        user_id: UUID,
        check: RoleCheck,
        *,
        assigned_by: UUID | None = None,
    ) -> GuardedWrite:
        def write(
            conn, verdict: RoleChangeVerdict, previous: Optional[RoleAssignment]
        ) -> GuardedWrite:
            if verdict.kind != VerdictKind.UPSERT or verdict.role is None:
                return GuardedWrite(
                    verdict=verdict, previous=previous, assignment=previous
                )
            row = conn.execute(
                self._SQL_UPSERT, (user_id, verdict.role.value, assigned_by)
            ).fetchone()
            return GuardedWrite(
                verdict=verdict,
                previous=previous,
                assignment=_to_assignment(row),
                written=True,
            )

        return self._guarded(
            user_id,
            check,
            write,
            context_msg="PostgresRoleAssignmentRepository: Failed to upsert assignment",
        )

    def remove_guarded(self, user_id: UUID, check: RoleCheck) -> GuardedWrite:
        def write(
            conn, verdict: RoleChangeVerdict, previous: Optional[RoleAssignment]
        ) -> GuardedWrite:
            if verdict.kind != VerdictKind.DELETE or previous is None:
                return GuardedWrite(
                    verdict=verdict, previous=previous, assignment=previous
                )
            conn.execute(self._SQL_DELETE, (user_id,))
            return GuardedWrite(verdict=verdict, previous=previous, written=True)

        return self._guarded(
            user_id,
            check,
            write,
            context_msg="PostgresRoleAssignmentRepository: Failed to remove assignment",
        )
