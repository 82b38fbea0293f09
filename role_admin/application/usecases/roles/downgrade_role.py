"""
===============================================================================
USE CASE: Downgrade Role
===============================================================================

Baja un nivel el rol de un usuario (owner -> admin -> moderator -> user).

Reglas:
  - Solo owner/admin pueden degradar.
  - Sin asignación -> NOT_FOUND; ya en el rol más bajo -> ALREADY_LOWEST.
  - El rol destino se calcula dentro de la transacción (rol vigente + 1).
  - Mismas reglas de guard que assign; auditoría role_downgraded.
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from ....domain.audit import AuditAction
from ....domain.repositories import AuditEntryRepository, RoleAssignmentRepository
from ....domain.role_policy import downgrade_check
from .role_access import apply_guarded_assignment, authorize_role_manager
from .role_results import RoleAssignmentResult


class DowngradeRoleUseCase:
    def __init__(
        self,
        role_repository: RoleAssignmentRepository,
        audit_repository: AuditEntryRepository | None = None,
    ) -> None:
        self._roles = role_repository
        self._audit = audit_repository

    def execute(
        self,
        actor_id: UUID | None,
        target_id: UUID,
        *,
        confirmed: bool = False,
    ) -> RoleAssignmentResult:
        _, error = authorize_role_manager(self._roles, actor_id)
        if error is not None:
            return RoleAssignmentResult(error=error)

        return apply_guarded_assignment(
            self._roles,
            self._audit,
            actor_id=actor_id,
            target_id=target_id,
            check=downgrade_check(actor_id, confirmed=confirmed),
            audit_action=AuditAction.ROLE_DOWNGRADED,
        )
