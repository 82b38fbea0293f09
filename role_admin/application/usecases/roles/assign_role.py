"""
===============================================================================
USE CASE: Assign Role
===============================================================================

Asigna (o reasigna) un rol a un usuario.

Reglas:
  - Solo owner/admin pueden asignar (rol del actor re-leído del store).
  - El guard se evalúa DENTRO de la escritura atómica del repositorio:
      * último owner -> LAST_OWNER_PROTECTED (no renunciable)
      * auto-degradación sin confirmar -> PendingConfirmation (nada escrito)
  - Mismo rol que el actual -> UNCHANGED (sin escritura, sin auditoría).
  - Éxito -> auditoría role_assigned / role_updated con {from, to}.
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from ....domain.entities import Role
from ....domain.repositories import AuditEntryRepository, RoleAssignmentRepository
from ....domain.role_policy import assignment_check
from .role_access import apply_guarded_assignment, authorize_role_manager
from .role_results import RoleAssignmentResult


class AssignRoleUseCase:
    """Asigna un rol a un usuario."""

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
        role: Role,
        *,
        confirmed: bool = False,
    ) -> RoleAssignmentResult:
        _, error = authorize_role_manager(self._roles, actor_id)
        if error is not None:
            return RoleAssignmentResult(error=error)
        return self.apply(actor_id, target_id, role, confirmed=confirmed)

    def apply(
        self,
        actor_id: UUID | None,
        target_id: UUID,
        role: Role,
        *,
        confirmed: bool = False,
    ) -> RoleAssignmentResult:
        """Asignación sin re-autorizar (el caller ya autorizó al actor)."""
        return apply_guarded_assignment(
            self._roles,
            self._audit,
            actor_id=actor_id,
            target_id=target_id,
            check=assignment_check(actor_id, role, confirmed=confirmed),
        )
