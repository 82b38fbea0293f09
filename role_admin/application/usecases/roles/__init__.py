"""
===============================================================================
ROLE USE CASES PACKAGE (Public API / Exports)
===============================================================================

Responsibilities:
    - Re-exportar casos de uso de gestión de roles (mutaciones + consultas).
    - Re-exportar DTOs/resultados y errores compartidos.
    - Definir __all__ como contrato de API pública del paquete.
===============================================================================
"""

from __future__ import annotations

# -----------------------------------------------------------------------------
# Use Cases
# -----------------------------------------------------------------------------
from .assign_role import AssignRoleUseCase
from .bulk_assign import BulkAssignRoleUseCase
from .downgrade_role import DowngradeRoleUseCase
from .list_role_assignments import ListRoleAssignmentsUseCase
from .query_audit import QueryAuditLogUseCase
from .remove_role import RemoveRoleUseCase
from .role_counts import RoleCountsUseCase
from .search import SearchScope, SearchUseCase

# -----------------------------------------------------------------------------
# DTOs / Result models
# -----------------------------------------------------------------------------
from .role_results import (
    AuditPageResult,
    BulkAssignResult,
    BulkItemFailure,
    MutationStatus,
    PendingConfirmation,
    RoleAssignmentPageResult,
    RoleAssignmentResult,
    RoleCountsResult,
    RoleError,
    RoleErrorCode,
    RoleRemovalResult,
    SearchResult,
)

__all__ = [
    # Use Cases
    "AssignRoleUseCase",
    "BulkAssignRoleUseCase",
    "DowngradeRoleUseCase",
    "ListRoleAssignmentsUseCase",
    "QueryAuditLogUseCase",
    "RemoveRoleUseCase",
    "RoleCountsUseCase",
    "SearchScope",
    "SearchUseCase",
    # Results
    "AuditPageResult",
    "BulkAssignResult",
    "BulkItemFailure",
    "MutationStatus",
    "PendingConfirmation",
    "RoleAssignmentPageResult",
    "RoleAssignmentResult",
    "RoleCountsResult",
    "RoleError",
    "RoleErrorCode",
    "RoleRemovalResult",
    "SearchResult",
]
