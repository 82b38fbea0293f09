"""
===============================================================================
TASK: Bootstrap Owner
===============================================================================

Qué es:
    Asegura que la plataforma tenga un primer owner. Si BOOTSTRAP_OWNER_USER_ID
    está configurado y el store NO tiene ningún owner, asigna owner a ese usuario.

Reglas:
    - Idempotente: si ya existe al menos un owner, no hace nada.
    - El chequeo "no hay owners" y la escritura son atómicos (check-and-set del
      repositorio), así dos réplicas arrancando a la vez no crean dos owners.
    - Audita role_assigned con actor None (sistema).

CRC:
    Component: ensure_bootstrap_owner
    Collaborators:
      - RoleAssignmentRepository (upsert_guarded)
      - role_admin.audit.emit_audit_entry
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from ..audit import emit_audit_entry
from ..crosscutting.logger import logger
from ..domain.audit import AuditAction
from ..domain.entities import Role
from ..domain.repositories import AuditEntryRepository, RoleAssignmentRepository
from ..domain.role_policy import RoleChangeVerdict, RoleSnapshot, VerdictKind


def _only_when_no_owner(snapshot: RoleSnapshot) -> RoleChangeVerdict:
    if snapshot.owner_count > 0:
        return RoleChangeVerdict(VerdictKind.NO_OP)
    return RoleChangeVerdict(VerdictKind.UPSERT, Role.OWNER)


def ensure_bootstrap_owner(
    role_repository: RoleAssignmentRepository,
    audit_repository: AuditEntryRepository | None,
    user_id: UUID | None,
) -> bool:
    """
    Siembra el primer owner.

    Returns:
        True si se escribió la asignación; False si no hizo falta.
    """
    if user_id is None:
        return False

    outcome = role_repository.upsert_guarded(user_id, _only_when_no_owner)
    if not outcome.written:
        logger.info(
            "Bootstrap owner: ya existe al menos un owner",
            extra={"user_id": str(user_id)},
        )
        return False

    previous_role = outcome.previous.role if outcome.previous else None
    logger.warning(
        "Bootstrap owner: owner inicial asignado",
        extra={"user_id": str(user_id)},
    )
    emit_audit_entry(
        audit_repository,
        action=AuditAction.ROLE_ASSIGNED
        if previous_role is None
        else AuditAction.ROLE_UPDATED,
        target_user_id=user_id,
        actor_user_id=None,
        metadata={
            "from": previous_role.value if previous_role else None,
            "to": Role.OWNER.value,
            "source": "bootstrap",
        },
    )
    return True
