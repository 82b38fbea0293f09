"""
===============================================================================
TARJETA CRC — role_admin/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer repositorios y casos de uso siguiendo DIP.
  - Exponer factories para FastAPI (Depends).
  - Mantener singletons con caching (lru_cache) para los repositorios.
  - Decidir adapters según Settings: in-memory en test, Postgres en runtime.

Colaboradores:
  - crosscutting.config.get_settings
  - domain.repositories (puertos)
  - infrastructure.repositories (implementaciones)
  - application.usecases.roles (casos de uso)

Notas:
  - Este archivo NO contiene lógica de negocio.
  - Este archivo NO depende de FastAPI.
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache

from .application.usecases.roles import (
    AssignRoleUseCase,
    BulkAssignRoleUseCase,
    DowngradeRoleUseCase,
    ListRoleAssignmentsUseCase,
    QueryAuditLogUseCase,
    RemoveRoleUseCase,
    RoleCountsUseCase,
    SearchUseCase,
)
from .crosscutting.config import get_settings
from .domain.repositories import AuditEntryRepository, RoleAssignmentRepository
from .infrastructure.repositories import (
    InMemoryAuditEntryRepository,
    InMemoryRoleAssignmentRepository,
    PostgresAuditEntryRepository,
    PostgresRoleAssignmentRepository,
)


# =============================================================================
# Repositorios (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_role_assignment_repository() -> RoleAssignmentRepository:
    """Asignaciones de rol (in-memory en test; Postgres en runtime)."""
    if get_settings().is_test_env():
        return InMemoryRoleAssignmentRepository()
    return PostgresRoleAssignmentRepository()


@lru_cache(maxsize=1)
def get_audit_entry_repository() -> AuditEntryRepository:
    """Auditoría (in-memory en test; Postgres en runtime)."""
    if get_settings().is_test_env():
        return InMemoryAuditEntryRepository()
    return PostgresAuditEntryRepository()


# =============================================================================
# Casos de uso
# =============================================================================


def get_assign_role_use_case() -> AssignRoleUseCase:
    return AssignRoleUseCase(
        role_repository=get_role_assignment_repository(),
        audit_repository=get_audit_entry_repository(),
    )


def get_downgrade_role_use_case() -> DowngradeRoleUseCase:
    return DowngradeRoleUseCase(
        role_repository=get_role_assignment_repository(),
        audit_repository=get_audit_entry_repository(),
    )


def get_remove_role_use_case() -> RemoveRoleUseCase:
    return RemoveRoleUseCase(
        role_repository=get_role_assignment_repository(),
        audit_repository=get_audit_entry_repository(),
    )


def get_bulk_assign_role_use_case() -> BulkAssignRoleUseCase:
    """Asignación masiva: límites de tamaño y concurrencia desde Settings."""
    settings = get_settings()
    return BulkAssignRoleUseCase(
        role_repository=get_role_assignment_repository(),
        assign_use_case=get_assign_role_use_case(),
        max_targets=settings.bulk_max_targets,
        max_concurrency=settings.bulk_max_concurrency,
    )


def get_list_role_assignments_use_case() -> ListRoleAssignmentsUseCase:
    return ListRoleAssignmentsUseCase(role_repository=get_role_assignment_repository())


def get_role_counts_use_case() -> RoleCountsUseCase:
    return RoleCountsUseCase(role_repository=get_role_assignment_repository())


def get_query_audit_log_use_case() -> QueryAuditLogUseCase:
    return QueryAuditLogUseCase(
        role_repository=get_role_assignment_repository(),
        audit_repository=get_audit_entry_repository(),
    )


def get_search_use_case() -> SearchUseCase:
    return SearchUseCase(
        role_repository=get_role_assignment_repository(),
        audit_repository=get_audit_entry_repository(),
    )
