"""
===============================================================================
USE CASE: Query Audit Log
===============================================================================

Lista paginada de la auditoría con filtros opcionales
(entity_type, actor_user_id, action, start_at, end_at).

Reglas:
  - Requiere permiso READ sobre "security" (owner/admin/moderator).
  - start_at > end_at -> VALIDATION_ERROR.
  - Orden: timestamp DESC, id ASC.
===============================================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from uuid import UUID

from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.pagination import (
    InvalidCursorError,
    clamp_limit,
    decode_cursor,
    paginate,
)
from ....domain.audit import AuditQuery
from ....domain.repositories import AuditEntryRepository, RoleAssignmentRepository
from ....domain.role_catalog import Resource
from .role_access import authorize_reader, store_failure, validation_error
from .role_results import AuditPageResult


def _as_utc(value: datetime | None) -> datetime | None:
    """Fechas sin zona se interpretan como UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class QueryAuditLogUseCase:
    def __init__(
        self,
        role_repository: RoleAssignmentRepository,
        audit_repository: AuditEntryRepository,
    ) -> None:
        self._roles = role_repository
        self._audit = audit_repository

    def execute(
        self,
        actor_id: UUID | None,
        query: AuditQuery,
        *,
        limit: int = 50,
        cursor: str | None = None,
    ) -> AuditPageResult:
        error = authorize_reader(self._roles, actor_id, Resource.SECURITY)
        if error is not None:
            return AuditPageResult(error=error)

        query = replace(
            query, start_at=_as_utc(query.start_at), end_at=_as_utc(query.end_at)
        )
        if query.start_at and query.end_at and query.start_at > query.end_at:
            return AuditPageResult(
                error=validation_error(
                    "start_at must be before end_at.",
                    start_at=query.start_at.isoformat(),
                    end_at=query.end_at.isoformat(),
                )
            )

        try:
            offset = decode_cursor(cursor) if cursor else 0
        except InvalidCursorError:
            return AuditPageResult(error=validation_error("Invalid cursor."))

        limit = clamp_limit(limit)
        try:
            entries = self._audit.list_entries(query, limit=limit + 1, offset=offset)
        except DatabaseError as exc:
            return AuditPageResult(error=store_failure(exc))

        return AuditPageResult(page=paginate(entries, limit, cursor))
