"""
===============================================================================
USE CASE: Bulk Assign Role
===============================================================================

Asigna el mismo rol a muchos usuarios con aislamiento de fallas por item.

Pasos:
  0. Validar targets (no vacío, sin duplicados, <= bulk_max_targets) y
     autorizar al actor UNA vez.
  1. Pre-chequeo de owners: si new_role != owner y el batch contiene a todos
     los owners actuales -> LAST_OWNER_PROTECTED (nada tocado).
  2. Pre-chequeo de auto-degradación: el actor está en el batch, se baja su
     propio rol y no confirmó -> SELF_DEMOTION_NEEDS_CONFIRMATION (nada tocado).
  3. Cada target pasa por la asignación guardada de forma independiente, con
     concurrencia acotada (ThreadPoolExecutor). Un error por item se registra
     como {user_id, reason} y no afecta a los demás.

Notas:
  - El pre-chequeo es una lectura NO transaccional; el guard por item sigue
    siendo transaccional, así que una carrera termina como falla por item.
  - Items sin cambio (mismo rol) cuentan como succeeded.
===============================================================================
"""

from __future__ import annotations

import contextvars
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence
from uuid import UUID

from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger
from ....crosscutting.metrics import observe_bulk_duration, record_bulk_item
from ....domain.entities import Role
from ....domain.repositories import RoleAssignmentRepository
from ....domain.role_policy import is_self_demotion
from .assign_role import AssignRoleUseCase
from .role_access import (
    authorize_role_manager,
    last_owner_protected,
    store_failure,
    validation_error,
)
from .role_results import (
    BulkAssignResult,
    BulkItemFailure,
    MutationStatus,
    RoleAssignmentResult,
    RoleError,
    RoleErrorCode,
)


def _dedupe_preserve_order(user_ids: Sequence[UUID]) -> List[UUID]:
    return list(dict.fromkeys(user_ids))


class BulkAssignRoleUseCase:
    """Coordina asignaciones masivas sobre AssignRoleUseCase."""

    def __init__(
        self,
        role_repository: RoleAssignmentRepository,
        assign_use_case: AssignRoleUseCase,
        *,
        max_targets: int = 500,
        max_concurrency: int = 8,
    ) -> None:
        self._roles = role_repository
        self._assign = assign_use_case
        self._max_targets = max_targets
        self._max_concurrency = max(1, max_concurrency)

    def execute(
        self,
        actor_id: UUID | None,
        user_ids: Sequence[UUID],
        role: Role,
        *,
        confirmed: bool = False,
    ) -> BulkAssignResult:
        targets = _dedupe_preserve_order(user_ids)
        if not targets:
            return BulkAssignResult(
                error=validation_error("At least one user_id is required.")
            )
        if len(targets) > self._max_targets:
            return BulkAssignResult(
                error=validation_error(
                    f"Too many targets (max {self._max_targets}).",
                    max_targets=self._max_targets,
                    received=len(targets),
                )
            )

        # Una sola autorización por llamada: una auto-degradación confirmada
        # dentro del batch no revoca los items restantes.
        actor_role, error = authorize_role_manager(self._roles, actor_id)
        if error is not None:
            return BulkAssignResult(error=error)

        error = self._precheck(actor_id, actor_role, targets, role, confirmed)
        if error is not None:
            return BulkAssignResult(error=error)

        started = time.perf_counter()
        results = self._run(actor_id, targets, role, confirmed)

        outcome = BulkAssignResult()
        for user_id, item in zip(targets, results):
            if isinstance(item, BulkItemFailure):
                outcome.failed.append(item)
            else:
                outcome.succeeded.append(user_id)

        record_bulk_item("succeeded", len(outcome.succeeded))
        record_bulk_item("failed", len(outcome.failed))
        observe_bulk_duration(time.perf_counter() - started)
        logger.info(
            "Asignación masiva completada",
            extra={
                "role": role.value,
                "targets": len(targets),
                "succeeded": len(outcome.succeeded),
                "failed": len(outcome.failed),
            },
        )
        return outcome

    # =========================================================
    # Pre-chequeos (batch entero)
    # =========================================================
    def _precheck(
        self,
        actor_id: UUID | None,
        actor_role: Role | None,
        targets: List[UUID],
        role: Role,
        confirmed: bool,
    ) -> RoleError | None:
        try:
            if role != Role.OWNER:
                owner_count = self._roles.count_by_role(Role.OWNER)
                owners_in_batch = 0
                for user_id in targets:
                    current = self._roles.get_assignment(user_id)
                    if current is not None and current.role == Role.OWNER:
                        owners_in_batch += 1
                if owner_count > 0 and owners_in_batch >= owner_count:
                    return last_owner_protected(
                        targets[0],
                        owners_in_batch=owners_in_batch,
                        owner_count=owner_count,
                    )
        except DatabaseError as exc:
            return store_failure(exc)

        if (
            actor_id is not None
            and actor_id in targets
            and not confirmed
            and is_self_demotion(actor_id, actor_id, actor_role, role)
        ):
            return RoleError(
                code=RoleErrorCode.SELF_DEMOTION_NEEDS_CONFIRMATION,
                message="The batch lowers your own role; confirm to proceed.",
                context={
                    "user_id": str(actor_id),
                    "current_role": actor_role.value,
                    "requested_role": role.value,
                },
            )
        return None

    # =========================================================
    # Ejecución por item (aislada)
    # =========================================================
    def _run_item(
        self, actor_id: UUID | None, user_id: UUID, role: Role, confirmed: bool
    ) -> UUID | BulkItemFailure:
        try:
            result: RoleAssignmentResult = self._assign.apply(
                actor_id, user_id, role, confirmed=confirmed
            )
        except Exception as exc:
            logger.exception(
                "Falla inesperada en item de asignación masiva",
                extra={"target_user_id": str(user_id)},
            )
            return BulkItemFailure(
                user_id=user_id,
                reason=RoleErrorCode.STORE_FAILURE,
                message=str(exc) or type(exc).__name__,
            )

        if result.error is not None:
            return BulkItemFailure(
                user_id=user_id, reason=result.error.code, message=result.error.message
            )
        if result.status == MutationStatus.PENDING_CONFIRMATION:
            return BulkItemFailure(
                user_id=user_id,
                reason=RoleErrorCode.SELF_DEMOTION_NEEDS_CONFIRMATION,
                message=result.pending.message if result.pending else "",
            )
        return user_id

    def _run(
        self,
        actor_id: UUID | None,
        targets: List[UUID],
        role: Role,
        confirmed: bool,
    ) -> List[UUID | BulkItemFailure]:
        workers = min(self._max_concurrency, len(targets))
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="bulk-assign"
        ) as pool:
            # Cada item corre con una copia del contexto (request_id en logs).
            futures = [
                pool.submit(
                    contextvars.copy_context().run,
                    self._run_item,
                    actor_id,
                    user_id,
                    role,
                    confirmed,
                )
                for user_id in targets
            ]
            return [future.result() for future in futures]
