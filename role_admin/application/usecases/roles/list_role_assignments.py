"""
===============================================================================
USE CASE: List Role Assignments (by role)
===============================================================================

Lista paginada de usuarios con un rol dado (created_at ASC, user_id ASC).
Requiere permiso READ sobre "roles".
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.pagination import (
    InvalidCursorError,
    clamp_limit,
    decode_cursor,
    paginate,
)
from ....domain.entities import Role
from ....domain.repositories import RoleAssignmentRepository
from ....domain.role_catalog import Resource
from .role_access import authorize_reader, store_failure, validation_error
from .role_results import RoleAssignmentPageResult


class ListRoleAssignmentsUseCase:
    def __init__(self, role_repository: RoleAssignmentRepository) -> None:
        self._roles = role_repository

    def execute(
        self,
        actor_id: UUID | None,
        role: Role,
        *,
        limit: int = 50,
        cursor: str | None = None,
    ) -> RoleAssignmentPageResult:
        error = authorize_reader(self._roles, actor_id, Resource.ROLES)
        if error is not None:
            return RoleAssignmentPageResult(error=error)

        try:
            offset = decode_cursor(cursor) if cursor else 0
        except InvalidCursorError:
            return RoleAssignmentPageResult(error=validation_error("Invalid cursor."))

        limit = clamp_limit(limit)
        try:
            rows = self._roles.list_by_role(role, limit=limit + 1, offset=offset)
        except DatabaseError as exc:
            return RoleAssignmentPageResult(error=store_failure(exc))

        return RoleAssignmentPageResult(page=paginate(rows, limit, cursor))
