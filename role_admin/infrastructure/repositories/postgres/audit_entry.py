"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/audit_entry.py
============================================================
Class: PostgresAuditEntryRepository

Responsibilities:
  - Persistir entradas de auditoría en PostgreSQL (tabla role_audit_log).
  - Listar entradas con filtros opcionales (entity_type, actor, action, fechas).
  - Búsqueda por keyword (ILIKE) sobre action / entity_type / entity_id.
  - Mantener respuestas determinísticas: created_at DESC, id ASC.

Collaborators:
  - domain.audit.AuditEntry / AuditQuery
  - psycopg_pool.ConnectionPool
  - psycopg.types.json.Json (JSON seguro hacia PostgreSQL)
  - crosscutting.exceptions.DatabaseError

Constraints / Notes:
  - Append-only: no se edita ni se borra.
  - Si falla, se propaga DatabaseError; role_admin/audit.py decide reintentar
    y finalmente tragar el error (best-effort).
============================================================
"""

from __future__ import annotations

from typing import Iterable

from psycopg.types.json import Json
from psycopg_pool import ConnectionPool

from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger
from ....domain.audit import AuditEntry, AuditQuery

_COLUMNS = "id, created_at, actor_user_id, action, entity_type, entity_id, metadata"


def _to_entry(row: tuple) -> AuditEntry:
    entry_id, created_at, actor, action, entity_type, entity_id, metadata = row
    return AuditEntry(
        id=entry_id,
        timestamp=created_at,
        actor_user_id=actor,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata=metadata or {},
    )


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PostgresAuditEntryRepository:
    """Repositorio PostgreSQL para auditoría (role_audit_log)."""

    _SQL_INSERT = f"""
        INSERT INTO role_audit_log (actor_user_id, action, entity_type, entity_id, metadata)
        VALUES (%s, %s, %s, %s, %s)
        RETURNING {_COLUMNS}
    """

    _SQL_SEARCH = f"""
        SELECT {_COLUMNS}
        FROM role_audit_log
        WHERE action ILIKE %s OR entity_type ILIKE %s OR entity_id ILIKE %s
        ORDER BY created_at DESC, id ASC
        LIMIT %s
    """

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    def _get_pool(self) -> ConnectionPool:
        if self._pool is not None:
            return self._pool
        from ...db.pool import get_pool

        return get_pool()

    def _fetchall(
        self,
        *,
        query: str,
        params: Iterable[object],
        error_message: str,
        extra: dict[str, object],
    ) -> list[tuple]:
        try:
            pool = self._get_pool()
            with pool.connection() as conn:
                return conn.execute(query, tuple(params)).fetchall()
        except Exception as exc:
            logger.exception(error_message, extra={**extra, "error": str(exc)})
            raise DatabaseError(
                f"{error_message}: {exc}", original_error=exc
            ) from exc

    # ------------------------------------------------------------
    # Escritura (append-only)
    # ------------------------------------------------------------
    def append(self, entry: AuditEntry) -> AuditEntry:
        try:
            pool = self._get_pool()
            with pool.connection() as conn:
                row = conn.execute(
                    self._SQL_INSERT,
                    (
                        entry.actor_user_id,
                        entry.action,
                        entry.entity_type,
                        entry.entity_id,
                        Json(entry.metadata or {}),
                    ),
                ).fetchone()
        except Exception as exc:
            logger.exception(
                "PostgresAuditEntryRepository: Failed to append audit entry",
                extra={
                    "action": entry.action,
                    "entity_id": entry.entity_id,
                    "error": str(exc),
                },
            )
            raise DatabaseError(
                f"Failed to append audit entry: {exc}", original_error=exc
            ) from exc
        return _to_entry(row)

    # ------------------------------------------------------------
    # Lectura
    # ------------------------------------------------------------
    def list_entries(
        self,
        query: AuditQuery,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AuditEntry]:
        """
        Lista entradas con filtros opcionales (AND).

        - start_at / end_at: rango inclusivo (>=, <=).
        - Orden: created_at DESC, id ASC.
        """
        if limit <= 0:
            return []
        offset = max(0, offset)

        conditions: list[str] = []
        params: list[object] = []

        if query.entity_type:
            conditions.append("entity_type = %s")
            params.append(query.entity_type)

        if query.actor_user_id is not None:
            conditions.append("actor_user_id = %s")
            params.append(query.actor_user_id)

        if query.action:
            conditions.append("action = %s")
            params.append(query.action)

        if query.start_at is not None:
            conditions.append("created_at >= %s")
            params.append(query.start_at)

        if query.end_at is not None:
            conditions.append("created_at <= %s")
            params.append(query.end_at)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        sql = f"""
            SELECT {_COLUMNS}
            FROM role_audit_log
            {where_clause}
            ORDER BY created_at DESC, id ASC
            LIMIT %s OFFSET %s
        """

        rows = self._fetchall(
            query=sql,
            params=[*params, limit, offset],
            error_message="PostgresAuditEntryRepository: Failed to list audit entries",
            extra={
                "entity_type": query.entity_type,
                "action": query.action,
                "limit": limit,
                "offset": offset,
            },
        )
        return [_to_entry(row) for row in rows]

    def search_entries(self, keyword: str, *, limit: int = 50) -> list[AuditEntry]:
        needle = (keyword or "").strip()
        if not needle or limit <= 0:
            return []
        pattern = f"%{_escape_like(needle)}%"
        rows = self._fetchall(
            query=self._SQL_SEARCH,
            params=[pattern, pattern, pattern, limit],
            error_message="PostgresAuditEntryRepository: Failed to search audit entries",
            extra={"limit": limit},
        )
        return [_to_entry(row) for row in rows]
