"""
===============================================================================
ROLE USE CASE RESULTS (Shared Result / Error Models)
===============================================================================

Name:
    Role Use Case Results

Business Goal:
    Proveer modelos compartidos de resultados y errores para los casos de uso
    de gestión de roles, con un contrato estable y explícito para:
      - invariantes (último owner, auto-degradación)
      - autorización
      - recursos no encontrados
      - fallas del store

Why (Context / Intención):
    - Los use cases devuelven resultados tipados en lugar de lanzar excepciones
      “hacia afuera”; la capa HTTP mapea `RoleErrorCode` a status codes.
    - PendingConfirmation NO es un error: es un resultado que pide re-invocar
      con confirmed=True. No se guarda estado server-side.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Component:
    role_results models (module)

Responsibilities:
    - Definir RoleErrorCode y RoleError (code + message + context).
    - Representar resultados de mutaciones, bulk y consultas.

Collaborators:
    - domain.entities.RoleAssignment / Role
    - domain.audit.AuditEntry
    - domain.role_catalog.RoleDefinition
    - crosscutting.pagination.Page
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List
from uuid import UUID

from ....crosscutting.pagination import Page
from ....domain.audit import AuditEntry
from ....domain.entities import Role, RoleAssignment
from ....domain.role_catalog import RoleDefinition


class RoleErrorCode(str, Enum):
    """
    Códigos de error de los casos de uso de roles.

      - LAST_OWNER_PROTECTED: el cambio dejaría a la plataforma sin owners.
      - SELF_DEMOTION_NEEDS_CONFIRMATION: batch que auto-degrada al actor sin confirmar.
      - NOT_FOUND: el usuario no tiene asignación.
      - ALREADY_LOWEST: downgrade sobre el rol más bajo.
      - FORBIDDEN: el actor no puede realizar la operación.
      - VALIDATION_ERROR: inputs inválidos.
      - STORE_FAILURE: la persistencia falló (tras reintentos).
    """

    LAST_OWNER_PROTECTED = "LAST_OWNER_PROTECTED"
    SELF_DEMOTION_NEEDS_CONFIRMATION = "SELF_DEMOTION_NEEDS_CONFIRMATION"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_LOWEST = "ALREADY_LOWEST"
    FORBIDDEN = "FORBIDDEN"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    STORE_FAILURE = "STORE_FAILURE"


@dataclass(frozen=True)
class RoleError:
    """
    Error de caso de uso.

    context lleva datos machine-readable (ej: user_id, role, owners_in_batch).
    """

    code: RoleErrorCode
    message: str
    context: Dict[str, Any] = field(default_factory=dict)


class MutationStatus(str, Enum):
    APPLIED = "applied"
    UNCHANGED = "unchanged"
    PENDING_CONFIRMATION = "pending_confirmation"


@dataclass(frozen=True)
class PendingConfirmation:
    """El actor intenta bajarse su propio rol: re-invocar con confirmed=True."""

    user_id: UUID
    current_role: Role
    requested_role: Role
    message: str = "Self-demotion requires explicit confirmation."


@dataclass
class RoleAssignmentResult:
    """
    Resultado de assign / downgrade.

    Contrato:
      - error is None y status APPLIED => assignment es la fila escrita.
      - status UNCHANGED => no hubo escritura ni auditoría.
      - status PENDING_CONFIRMATION => pending presente, nada escrito.
    """

    assignment: RoleAssignment | None = None
    previous_role: Role | None = None
    status: MutationStatus | None = None
    pending: PendingConfirmation | None = None
    error: RoleError | None = None

    @property
    def changed(self) -> bool:
        return self.status == MutationStatus.APPLIED


@dataclass
class RoleRemovalResult:
    removed: bool = False
    removed_role: Role | None = None
    error: RoleError | None = None


@dataclass(frozen=True)
class BulkItemFailure:
    user_id: UUID
    reason: RoleErrorCode
    message: str


@dataclass
class BulkAssignResult:
    """
    Resultado de asignación masiva.

    - error presente => el batch entero fue rechazado (nada tocado).
    - sino succeeded/failed en el orden de entrada (sin duplicados).
    """

    succeeded: List[UUID] = field(default_factory=list)
    failed: List[BulkItemFailure] = field(default_factory=list)
    error: RoleError | None = None


@dataclass
class RoleAssignmentPageResult:
    page: Page | None = None
    error: RoleError | None = None


@dataclass
class RoleCountsResult:
    counts: Dict[Role, int] = field(default_factory=dict)
    error: RoleError | None = None

    @property
    def total(self) -> int:
        return sum(self.counts.values())


@dataclass
class AuditPageResult:
    page: Page | None = None
    error: RoleError | None = None


@dataclass
class SearchResult:
    roles: List[RoleDefinition] = field(default_factory=list)
    audit_entries: List[AuditEntry] = field(default_factory=list)
    error: RoleError | None = None
