"""
CRC — domain/repositories.py

Name
- Domain Repository Interfaces (Protocols)

Responsibilities
- Define persistence contracts for role assignments and the audit log (ports).
- Keep application/domain independent from infrastructure (PostgreSQL, in-memory).
- Expose mutations ONLY as guarded check-and-set operations.

Collaborators
- domain.entities: Role, RoleAssignment
- domain.audit: AuditEntry, AuditQuery
- domain.role_policy: RoleSnapshot, RoleCheck, RoleChangeVerdict
- infrastructure.repositories: postgres / in_memory implementations

Constraints
- Pure interfaces only: no side effects, no infrastructure imports, no SQL.
- Implementations MUST evaluate `check` and the write inside one atomic unit
  (DB transaction + advisory lock, or a process lock).
- Implementations raise DatabaseError on persistence failures.

Notes
- We use typing.Protocol for structural subtyping ("duck typing").
- Outputs are concrete lists for predictable iteration/serialization.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol
from uuid import UUID

from .audit import AuditEntry, AuditQuery
from .entities import Role, RoleAssignment
from .role_policy import RoleChangeVerdict, RoleCheck


@dataclass(frozen=True, slots=True)
class GuardedWrite:
    """Outcome of a guarded check-and-set."""

    verdict: RoleChangeVerdict
    previous: RoleAssignment | None = None
    assignment: RoleAssignment | None = None
    written: bool = False


class RoleAssignmentRepository(Protocol):
    """
    R: Interface for role assignment persistence.

    Implementations must provide:
      - Point reads and per-role counts
      - Guarded upsert/remove (snapshot + check + write atomically)
      - Paginated listing by role
    """

    def ping(self) -> bool:
        """R: Connectivity check (raises DatabaseError when the store is down)."""
        ...

    def get_assignment(self, user_id: UUID) -> Optional[RoleAssignment]:
        """R: Fetch the assignment of a user (None = unassigned)."""
        ...

    def count_by_role(self, role: Role) -> int:
        """R: Number of users holding `role`."""
        ...

    def count_all_by_role(self) -> Dict[Role, int]:
        """R: Counts for every role (zero-filled)."""
        ...

    def upsert_guarded(
        self,
        user_id: UUID,
        check: RoleCheck,
        *,
        assigned_by: UUID | None = None,
    ) -> GuardedWrite:
        """
        R: Atomic check-and-set for an assignment.

        Reads RoleSnapshot(user_id, current, owner_count), calls check(snapshot)
        and, only if the verdict is UPSERT, writes verdict.role before commit.
        """
        ...

    def remove_guarded(self, user_id: UUID, check: RoleCheck) -> GuardedWrite:
        """R: Atomic check-and-delete. Writes only on a DELETE verdict."""
        ...

    def list_by_role(
        self, role: Role, *, limit: int = 50, offset: int = 0
    ) -> List[RoleAssignment]:
        """R: Assignments with `role`, ordered by created_at ASC, user_id ASC."""
        ...


class AuditEntryRepository(Protocol):
    """R: Interface for the append-only audit log."""

    def append(self, entry: AuditEntry) -> AuditEntry:
        """R: Persist an entry; returns it with id/timestamp assigned."""
        ...

    def list_entries(
        self,
        query: AuditQuery,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> List[AuditEntry]:
        """R: Filtered entries ordered by timestamp DESC, id ASC."""
        ...

    def search_entries(self, keyword: str, *, limit: int = 50) -> List[AuditEntry]:
        """R: Case-insensitive substring over action, entity_type and entity_id."""
        ...
