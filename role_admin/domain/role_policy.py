"""
===============================================================================
TARJETA CRC — domain/role_policy.py
===============================================================================

Módulo:
    Política de Cambios de Rol (Invariant Guard)

Responsabilidades:
    - Decidir si un cambio de rol está permitido, denegado o requiere confirmación.
    - Traducir esa decisión a un veredicto de escritura (upsert / delete / nada)
      evaluable DENTRO de la transacción del repositorio (check-and-set).
    - Ser 100% testeable: funciones puras, inputs explícitos, cero I/O.

Colaboradores:
    - domain.role_catalog: jerarquía (hierarchy_index / next_lower).
    - domain.repositories.RoleAssignmentRepository.upsert_guarded / remove_guarded:
      ejecutan el check con un RoleSnapshot leído en la misma transacción
      que la escritura.
    - application/usecases/roles: construyen los checks y mapean veredictos.

Reglas (en orden de precedencia):
    1. current == owner y (requested != owner o es remoción) y owners <= 1
       -> DENY_LAST_OWNER. No es renunciable: gana aunque actor == target.
    2. actor == target y requested tiene menos privilegio que current
       -> REQUIRES_CONFIRMATION (auto-degradación). No aplica a remociones.
    3. Resto -> ALLOW.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable
from uuid import UUID

from . import role_catalog
from .entities import Role, RoleAssignment


class GuardDecision(str, Enum):
    ALLOW = "allow"
    DENY_LAST_OWNER = "deny_last_owner"
    REQUIRES_CONFIRMATION = "requires_confirmation"


def is_self_demotion(
    actor_id: UUID | None,
    target_id: UUID,
    current_role: Role | None,
    requested_role: Role | None,
) -> bool:
    """True si el actor se baja su propio privilegio."""
    if actor_id is None or actor_id != target_id:
        return False
    if current_role is None or requested_role is None:
        return False
    return role_catalog.hierarchy_index(requested_role) > role_catalog.hierarchy_index(
        current_role
    )


def decide(
    actor_id: UUID | None,
    target_id: UUID,
    current_role: Role | None,
    requested_role: Role | None,
    *,
    owner_count: int,
    is_removal: bool = False,
) -> GuardDecision:
    """Evalúa un cambio propuesto. Nunca muta estado."""
    if current_role == Role.OWNER and (is_removal or requested_role != Role.OWNER):
        if owner_count <= 1:
            return GuardDecision.DENY_LAST_OWNER

    if not is_removal and is_self_demotion(
        actor_id, target_id, current_role, requested_role
    ):
        return GuardDecision.REQUIRES_CONFIRMATION

    return GuardDecision.ALLOW


# ---------------------------------------------------------------------------
# Check-and-set: snapshot transaccional -> veredicto de escritura
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RoleSnapshot:
    """Estado leído por el repositorio dentro de la transacción de escritura."""

    user_id: UUID
    current: RoleAssignment | None
    owner_count: int

    @property
    def current_role(self) -> Role | None:
        return self.current.role if self.current else None


class VerdictKind(str, Enum):
    UPSERT = "upsert"
    DELETE = "delete"
    NO_OP = "no_op"
    NOT_FOUND = "not_found"
    ALREADY_LOWEST = "already_lowest"
    DENY_LAST_OWNER = "deny_last_owner"
    NEEDS_CONFIRMATION = "needs_confirmation"


@dataclass(frozen=True, slots=True)
class RoleChangeVerdict:
    """Qué debe hacer el repositorio con la fila (y con qué rol, si aplica)."""

    kind: VerdictKind
    role: Role | None = None

    @property
    def permits_write(self) -> bool:
        return self.kind in (VerdictKind.UPSERT, VerdictKind.DELETE)


RoleCheck = Callable[[RoleSnapshot], RoleChangeVerdict]


def _verdict_for_assignment(
    snapshot: RoleSnapshot,
    *,
    actor_id: UUID | None,
    requested: Role,
    confirmed: bool,
) -> RoleChangeVerdict:
    current = snapshot.current_role
    if current == requested:
        return RoleChangeVerdict(VerdictKind.NO_OP, requested)

    decision = decide(
        actor_id,
        snapshot.user_id,
        current,
        requested,
        owner_count=snapshot.owner_count,
    )
    if decision == GuardDecision.DENY_LAST_OWNER:
        return RoleChangeVerdict(VerdictKind.DENY_LAST_OWNER, requested)
    if decision == GuardDecision.REQUIRES_CONFIRMATION and not confirmed:
        return RoleChangeVerdict(VerdictKind.NEEDS_CONFIRMATION, requested)
    return RoleChangeVerdict(VerdictKind.UPSERT, requested)


def assignment_check(
    actor_id: UUID | None, requested: Role, *, confirmed: bool = False
) -> RoleCheck:
    """Check para asignar `requested` al usuario del snapshot."""

    def check(snapshot: RoleSnapshot) -> RoleChangeVerdict:
        return _verdict_for_assignment(
            snapshot, actor_id=actor_id, requested=requested, confirmed=confirmed
        )

    return check


def downgrade_check(actor_id: UUID | None, *, confirmed: bool = False) -> RoleCheck:
    """
    Check para bajar un nivel.

    El rol destino se calcula con el rol vigente EN la transacción, no con una
    lectura previa: dos downgrades concurrentes no saltean niveles en silencio.
    """

    def check(snapshot: RoleSnapshot) -> RoleChangeVerdict:
        current = snapshot.current_role
        if current is None:
            return RoleChangeVerdict(VerdictKind.NOT_FOUND)
        lower = role_catalog.next_lower(current)
        if lower is None:
            return RoleChangeVerdict(VerdictKind.ALREADY_LOWEST, current)
        return _verdict_for_assignment(
            snapshot, actor_id=actor_id, requested=lower, confirmed=confirmed
        )

    return check


def removal_check(actor_id: UUID | None) -> RoleCheck:
    """Check para eliminar la asignación del usuario del snapshot."""

    def check(snapshot: RoleSnapshot) -> RoleChangeVerdict:
        current = snapshot.current_role
        if current is None:
            return RoleChangeVerdict(VerdictKind.NOT_FOUND)
        decision = decide(
            actor_id,
            snapshot.user_id,
            current,
            None,
            owner_count=snapshot.owner_count,
            is_removal=True,
        )
        if decision == GuardDecision.DENY_LAST_OWNER:
            return RoleChangeVerdict(VerdictKind.DENY_LAST_OWNER)
        return RoleChangeVerdict(VerdictKind.DELETE)

    return check
