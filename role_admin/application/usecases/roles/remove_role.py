"""
===============================================================================
USE CASE: Remove Role
===============================================================================

Elimina la asignación de rol de un usuario (queda "Unassigned").

Reglas:
  - Solo owner/admin pueden eliminar.
  - Sin asignación -> NOT_FOUND.
  - Eliminar al último owner -> LAST_OWNER_PROTECTED.
  - Nunca pide confirmación (tampoco para auto-remoción).
  - Éxito -> auditoría role_removed con {from}.
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from ....audit import emit_audit_entry
from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger
from ....crosscutting.metrics import record_role_mutation
from ....domain.audit import AuditAction
from ....domain.repositories import AuditEntryRepository, RoleAssignmentRepository
from ....domain.role_policy import VerdictKind, removal_check
from .role_access import authorize_role_manager, last_owner_protected, store_failure
from .role_results import RoleError, RoleErrorCode, RoleRemovalResult


class RemoveRoleUseCase:
    def __init__(
        self,
        role_repository: RoleAssignmentRepository,
        audit_repository: AuditEntryRepository | None = None,
    ) -> None:
        self._roles = role_repository
        self._audit = audit_repository

    def execute(self, actor_id: UUID | None, target_id: UUID) -> RoleRemovalResult:
        """
        Pasos:
          1. Autorizar actor.
          2. remove_guarded (check + delete atómico).
          3. Auditar si se borró.
        """
        _, error = authorize_role_manager(self._roles, actor_id)
        if error is not None:
            return RoleRemovalResult(error=error)

        try:
            outcome = self._roles.remove_guarded(target_id, removal_check(actor_id))
        except DatabaseError as exc:
            return RoleRemovalResult(error=store_failure(exc))

        if outcome.verdict.kind == VerdictKind.NOT_FOUND:
            return RoleRemovalResult(
                error=RoleError(
                    code=RoleErrorCode.NOT_FOUND,
                    message="User has no role assignment.",
                    context={"user_id": str(target_id)},
                )
            )

        removed_role = outcome.previous.role if outcome.previous else None

        if outcome.verdict.kind == VerdictKind.DENY_LAST_OWNER:
            return RoleRemovalResult(
                removed_role=None, error=last_owner_protected(target_id)
            )

        record_role_mutation(AuditAction.ROLE_REMOVED.value)
        logger.info(
            "Rol eliminado",
            extra={
                "target_user_id": str(target_id),
                "from_role": removed_role.value if removed_role else None,
            },
        )
        emit_audit_entry(
            self._audit,
            action=AuditAction.ROLE_REMOVED,
            target_user_id=target_id,
            actor_user_id=actor_id,
            metadata={"from": removed_role.value if removed_role else None},
        )
        return RoleRemovalResult(removed=True, removed_role=removed_role)
