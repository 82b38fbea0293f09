"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/role_assignment.py
============================================================
Class: InMemoryRoleAssignmentRepository

Responsibilities:
  - Almacenar asignaciones de rol en memoria (tests / local dev).
  - Ejecutar check-and-set atómico: snapshot + check + escritura bajo un Lock.
  - Mantener ordering determinístico para tests estables.

Collaborators:
  - domain.repositories.RoleAssignmentRepository (contrato)
  - domain.role_policy (RoleSnapshot / RoleChangeVerdict)

Constraints / Notes:
  - Thread-safe: un único Lock serializa TODAS las escrituras guardadas,
    equivalente al advisory lock de la versión Postgres.
  - Repo puro: NO decide reglas; solo evalúa el check que recibe.
  - Entidades inmutables: nunca se expone estado interno mutable.
============================================================
"""

from __future__ import annotations

from datetime import datetime, timezone
from threading import Lock
from typing import Dict, List, Optional
from uuid import UUID

from ....domain.entities import Role, RoleAssignment
from ....domain.repositories import GuardedWrite, RoleAssignmentRepository
from ....domain.role_policy import RoleCheck, RoleSnapshot, VerdictKind

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class InMemoryRoleAssignmentRepository(RoleAssignmentRepository):
    """
    Repositorio in-memory, thread-safe, para asignaciones de rol.

    Modelo mental:
    - _rows actúa como tabla user_roles: user_id -> RoleAssignment (PK user_id).
    """

    def __init__(self, assignments: Optional[List[RoleAssignment]] = None) -> None:
        self._lock = Lock()
        self._rows: Dict[UUID, RoleAssignment] = {}
        for assignment in assignments or []:
            self._rows[assignment.user_id] = assignment

    # =========================================================
    # Helpers internos (asumen lock tomado)
    # =========================================================
    def _count_locked(self, role: Role) -> int:
        return sum(1 for row in self._rows.values() if row.role == role)

    def _snapshot_locked(self, user_id: UUID) -> RoleSnapshot:
        return RoleSnapshot(
            user_id=user_id,
            current=self._rows.get(user_id),
            owner_count=self._count_locked(Role.OWNER),
        )

    # =========================================================
    # Lecturas
    # =========================================================
    def ping(self) -> bool:
        return True

    def get_assignment(self, user_id: UUID) -> Optional[RoleAssignment]:
        with self._lock:
            return self._rows.get(user_id)

    def count_by_role(self, role: Role) -> int:
        with self._lock:
            return self._count_locked(role)

    def count_all_by_role(self) -> Dict[Role, int]:
        with self._lock:
            counts = {role: 0 for role in Role}
            for row in self._rows.values():
                counts[row.role] += 1
            return counts

    def list_by_role(
        self, role: Role, *, limit: int = 50, offset: int = 0
    ) -> List[RoleAssignment]:
        if limit <= 0:
            return []
        offset = max(0, offset)
        with self._lock:
            rows = [row for row in self._rows.values() if row.role == role]
        rows.sort(key=lambda row: (row.created_at or _EPOCH, str(row.user_id)))
        return rows[offset : offset + limit]

    # =========================================================
    # Escrituras guardadas (check-and-set)
    # =========================================================
    def upsert_guarded(
        self,
        user_id: UUID,
        check: RoleCheck,
        *,
        assigned_by: UUID | None = None,
    ) -> GuardedWrite:
        with self._lock:
            snapshot = self._snapshot_locked(user_id)
            verdict = check(snapshot)
            previous = snapshot.current

            if verdict.kind != VerdictKind.UPSERT or verdict.role is None:
                return GuardedWrite(
                    verdict=verdict, previous=previous, assignment=previous
                )

            if previous is None:
                assignment = RoleAssignment.new(
                    user_id, verdict.role, assigned_by=assigned_by
                )
            else:
                assignment = previous.with_role(verdict.role, assigned_by=assigned_by)

            self._rows[user_id] = assignment
            return GuardedWrite(
                verdict=verdict, previous=previous, assignment=assignment, written=True
            )

    def remove_guarded(self, user_id: UUID, check: RoleCheck) -> GuardedWrite:
        with self._lock:
            snapshot = self._snapshot_locked(user_id)
            verdict = check(snapshot)
            previous = snapshot.current

            if verdict.kind != VerdictKind.DELETE or previous is None:
                return GuardedWrite(
                    verdict=verdict, previous=previous, assignment=previous
                )

            del self._rows[user_id]
            return GuardedWrite(verdict=verdict, previous=previous, written=True)
