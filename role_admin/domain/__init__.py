"""
===============================================================================
TARJETA CRC — domain/__init__.py
===============================================================================

Módulo:
    Exportaciones de la Capa de Dominio (API pública del dominio)

Responsabilidades:
    - Centralizar exports para imports limpios en application/interfaces.
    - Mantener estable el “surface area” del dominio.

Colaboradores:
    - domain.entities: Role, RoleAssignment
    - domain.audit: AuditEntry, AuditQuery
    - domain.role_policy: guard + checks transaccionales
    - domain.repositories: Puertos de persistencia

Reglas:
    - Solo re-exporta contratos/entidades del dominio.
    - No importar infraestructura aquí.
===============================================================================
"""

from .audit import (
    ENTITY_TYPE_ROLE_ASSIGNMENT,
    AuditAction,
    AuditEntry,
    AuditQuery,
)
from .entities import Role, RoleAssignment, RoleComparison
from .repositories import (
    AuditEntryRepository,
    GuardedWrite,
    RoleAssignmentRepository,
)
from .role_policy import (
    GuardDecision,
    RoleChangeVerdict,
    RoleCheck,
    RoleSnapshot,
    VerdictKind,
    decide,
)

__all__ = [
    # Entities
    "Role",
    "RoleAssignment",
    "RoleComparison",
    # Audit
    "AuditAction",
    "AuditEntry",
    "AuditQuery",
    "ENTITY_TYPE_ROLE_ASSIGNMENT",
    # Policy
    "GuardDecision",
    "RoleChangeVerdict",
    "RoleCheck",
    "RoleSnapshot",
    "VerdictKind",
    "decide",
    # Repository Interfaces (Ports)
    "AuditEntryRepository",
    "GuardedWrite",
    "RoleAssignmentRepository",
]
