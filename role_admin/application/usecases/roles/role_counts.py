"""
===============================================================================
USE CASE: Role Counts
===============================================================================

Cantidad de usuarios por rol (todos los roles presentes, con cero) + total.
Lectura simple, sin locks (eventualmente consistente).
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from ....crosscutting.exceptions import DatabaseError
from ....domain.entities import Role
from ....domain.repositories import RoleAssignmentRepository
from ....domain.role_catalog import Resource
from .role_access import authorize_reader, store_failure
from .role_results import RoleCountsResult


class RoleCountsUseCase:
    def __init__(self, role_repository: RoleAssignmentRepository) -> None:
        self._roles = role_repository

    def execute(self, actor_id: UUID | None) -> RoleCountsResult:
        error = authorize_reader(self._roles, actor_id, Resource.ROLES)
        if error is not None:
            return RoleCountsResult(error=error)

        try:
            raw = self._roles.count_all_by_role()
        except DatabaseError as exc:
            return RoleCountsResult(error=store_failure(exc))

        return RoleCountsResult(counts={role: int(raw.get(role, 0)) for role in Role})
