"""
===============================================================================
ROLE ACCESS HELPERS (shared by role use cases)
===============================================================================

Responsabilidades:
    - Autorizar al actor re-leyendo su rol ACTUAL desde el store
      (nunca desde claims del token).
    - Ejecutar una escritura guardada de asignación y traducir el veredicto
      del repositorio a RoleAssignmentResult (+ auditoría + métricas).

Colaboradores:
    - domain.repositories (RoleAssignmentRepository / AuditEntryRepository)
    - domain.role_catalog (can_manage_roles / has_permission)
    - role_admin.audit.emit_audit_entry (best-effort, post-commit)
    - crosscutting.metrics
===============================================================================
"""

from __future__ import annotations

from typing import Tuple
from uuid import UUID

from ....audit import emit_audit_entry
from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger
from ....crosscutting.metrics import (
    record_guard_denial,
    record_pending_confirmation,
    record_role_mutation,
)
from ....domain import role_catalog
from ....domain.audit import AuditAction
from ....domain.entities import Role
from ....domain.repositories import AuditEntryRepository, RoleAssignmentRepository
from ....domain.role_catalog import Action, Resource
from ....domain.role_policy import RoleCheck, VerdictKind
from .role_results import (
    MutationStatus,
    PendingConfirmation,
    RoleAssignmentResult,
    RoleError,
    RoleErrorCode,
)


def store_failure(exc: DatabaseError) -> RoleError:
    return RoleError(
        code=RoleErrorCode.STORE_FAILURE,
        message="Role store unavailable.",
        context={"error_id": exc.error_id},
    )


def forbidden(message: str = "Access denied.") -> RoleError:
    record_guard_denial(RoleErrorCode.FORBIDDEN.value)
    return RoleError(code=RoleErrorCode.FORBIDDEN, message=message)


def validation_error(message: str, **context) -> RoleError:
    return RoleError(
        code=RoleErrorCode.VALIDATION_ERROR, message=message, context=context
    )


def last_owner_protected(user_id: UUID, **context) -> RoleError:
    record_guard_denial(RoleErrorCode.LAST_OWNER_PROTECTED.value)
    return RoleError(
        code=RoleErrorCode.LAST_OWNER_PROTECTED,
        message="The platform must keep at least one owner.",
        context={"user_id": str(user_id), **context},
    )


def current_role_of(
    roles: RoleAssignmentRepository, actor_id: UUID | None
) -> Tuple[Role | None, RoleError | None]:
    """Rol vigente del actor (None si no tiene asignación)."""
    if actor_id is None:
        return None, None
    try:
        assignment = roles.get_assignment(actor_id)
    except DatabaseError as exc:
        return None, store_failure(exc)
    return (assignment.role if assignment else None), None


def authorize_role_manager(
    roles: RoleAssignmentRepository, actor_id: UUID | None
) -> Tuple[Role | None, RoleError | None]:
    """
    Solo owner/admin pueden mutar roles.

    Devuelve (rol_del_actor, error). error None => autorizado.
    """
    actor_role, error = current_role_of(roles, actor_id)
    if error is not None:
        return None, error
    if not role_catalog.can_manage_roles(actor_role):
        return actor_role, forbidden("Only owners and admins can manage roles.")
    return actor_role, None


def authorize_reader(
    roles: RoleAssignmentRepository,
    actor_id: UUID | None,
    resource: Resource,
) -> RoleError | None:
    """Lecturas: el actor necesita permiso READ sobre el recurso."""
    actor_role, error = current_role_of(roles, actor_id)
    if error is not None:
        return error
    if actor_role is None or not role_catalog.has_permission(
        actor_role, resource, Action.READ
    ):
        return forbidden()
    return None


def apply_guarded_assignment(
    roles: RoleAssignmentRepository,
    audit: AuditEntryRepository | None,
    *,
    actor_id: UUID | None,
    target_id: UUID,
    check: RoleCheck,
    audit_action: AuditAction | None = None,
) -> RoleAssignmentResult:
    """
    Ejecuta upsert_guarded y mapea el veredicto.

    audit_action None => role_assigned (sin fila previa) o role_updated.
    """
    try:
        outcome = roles.upsert_guarded(target_id, check, assigned_by=actor_id)
    except DatabaseError as exc:
        return RoleAssignmentResult(error=store_failure(exc))

    verdict = outcome.verdict
    previous_role = outcome.previous.role if outcome.previous else None

    if verdict.kind == VerdictKind.NOT_FOUND:
        return RoleAssignmentResult(
            error=RoleError(
                code=RoleErrorCode.NOT_FOUND,
                message="User has no role assignment.",
                context={"user_id": str(target_id)},
            )
        )

    if verdict.kind == VerdictKind.ALREADY_LOWEST:
        return RoleAssignmentResult(
            previous_role=previous_role,
            error=RoleError(
                code=RoleErrorCode.ALREADY_LOWEST,
                message="User already has the lowest role.",
                context={"user_id": str(target_id), "role": previous_role.value},
            ),
        )

    if verdict.kind == VerdictKind.DENY_LAST_OWNER:
        logger.info(
            "Cambio de rol rechazado: último owner",
            extra={"target_user_id": str(target_id)},
        )
        return RoleAssignmentResult(
            previous_role=previous_role,
            error=last_owner_protected(
                target_id, requested_role=verdict.role.value if verdict.role else None
            ),
        )

    if verdict.kind == VerdictKind.NEEDS_CONFIRMATION:
        record_pending_confirmation()
        return RoleAssignmentResult(
            assignment=outcome.previous,
            previous_role=previous_role,
            status=MutationStatus.PENDING_CONFIRMATION,
            pending=PendingConfirmation(
                user_id=target_id,
                current_role=previous_role,
                requested_role=verdict.role,
            ),
        )

    if not outcome.written:
        return RoleAssignmentResult(
            assignment=outcome.previous,
            previous_role=previous_role,
            status=MutationStatus.UNCHANGED,
        )

    action = audit_action or (
        AuditAction.ROLE_ASSIGNED if outcome.previous is None else AuditAction.ROLE_UPDATED
    )
    new_role = outcome.assignment.role
    record_role_mutation(action.value)
    logger.info(
        "Rol asignado",
        extra={
            "target_user_id": str(target_id),
            "from_role": previous_role.value if previous_role else None,
            "to_role": new_role.value,
            "audit_action": action.value,
        },
    )
    emit_audit_entry(
        audit,
        action=action,
        target_user_id=target_id,
        actor_user_id=actor_id,
        metadata={
            "from": previous_role.value if previous_role else None,
            "to": new_role.value,
        },
    )
    return RoleAssignmentResult(
        assignment=outcome.assignment,
        previous_role=previous_role,
        status=MutationStatus.APPLIED,
    )
