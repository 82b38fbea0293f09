"""
===============================================================================
TARJETA CRC — schemas/roles.py
===============================================================================

Módulo:
    Schemas HTTP para gestión de roles y auditoría

Responsabilidades:
    - DTOs de request/response de los endpoints /roles.
    - Adapters dominio -> DTO (from_domain) en un único lugar.
    - Mantener contratos estables (status de mutación explícito).

Colaboradores:
    - domain.entities (Role, RoleAssignment)
    - domain.audit.AuditEntry
    - domain.role_catalog.RoleDefinition
    - application.usecases.roles (MutationStatus, PendingConfirmation)
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from .....application.usecases.roles import (
    BulkItemFailure,
    MutationStatus,
    PendingConfirmation,
)
from .....crosscutting.pagination import PageInfo
from .....domain.audit import AuditEntry
from .....domain.entities import Role, RoleAssignment
from .....domain.role_catalog import RoleDefinition

# =============================================================================
# Requests
# =============================================================================


class AssignRoleReq(BaseModel):
    role: Role
    confirmed: bool = False


class DowngradeRoleReq(BaseModel):
    confirmed: bool = False


class BulkAssignReq(BaseModel):
    user_ids: list[UUID] = Field(..., min_length=1)
    role: Role
    confirmed: bool = False


# =============================================================================
# Responses
# =============================================================================


class RoleAssignmentRes(BaseModel):
    user_id: UUID
    role: Role
    assigned_by: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, assignment: RoleAssignment) -> "RoleAssignmentRes":
        return cls(
            user_id=assignment.user_id,
            role=assignment.role,
            assigned_by=assignment.assigned_by,
            created_at=assignment.created_at,
            updated_at=assignment.updated_at,
        )


class PendingConfirmationRes(BaseModel):
    """El actor se auto-degrada: re-enviar con confirmed=true."""

    user_id: UUID
    current_role: Role
    requested_role: Role
    message: str

    @classmethod
    def from_domain(cls, pending: PendingConfirmation) -> "PendingConfirmationRes":
        return cls(
            user_id=pending.user_id,
            current_role=pending.current_role,
            requested_role=pending.requested_role,
            message=pending.message,
        )


class RoleMutationRes(BaseModel):
    """Resultado de assign / downgrade."""

    status: MutationStatus
    assignment: RoleAssignmentRes | None = None
    previous_role: Role | None = None
    pending: PendingConfirmationRes | None = None


class BulkItemFailureRes(BaseModel):
    user_id: UUID
    reason: str
    message: str

    @classmethod
    def from_domain(cls, failure: BulkItemFailure) -> "BulkItemFailureRes":
        return cls(
            user_id=failure.user_id,
            reason=failure.reason.value,
            message=failure.message,
        )


class BulkAssignRes(BaseModel):
    succeeded: list[UUID]
    failed: list[BulkItemFailureRes]


class RoleAssignmentsRes(BaseModel):
    """Listado paginado (cursor opaco)."""

    items: list[RoleAssignmentRes]
    page_info: PageInfo


class RoleCountsRes(BaseModel):
    counts: dict[Role, int]
    total: int


class RoleDefinitionRes(BaseModel):
    role: Role
    name: str
    description: str
    permissions: dict[str, list[str]] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, definition: RoleDefinition) -> "RoleDefinitionRes":
        return cls(
            role=definition.role,
            name=definition.name,
            description=definition.description,
            permissions={
                resource.value: sorted(action.value for action in actions)
                for resource, actions in definition.permissions.items()
                if actions
            },
        )


class RoleCatalogRes(BaseModel):
    roles: list[RoleDefinitionRes]


class AuditEntryRes(BaseModel):
    """Entrada de auditoría serializable."""

    id: int | None = None
    timestamp: datetime | None = None
    actor_user_id: UUID | None = None
    action: str
    entity_type: str
    entity_id: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, entry: AuditEntry) -> "AuditEntryRes":
        return cls(
            id=entry.id,
            timestamp=entry.timestamp,
            actor_user_id=entry.actor_user_id,
            action=entry.action,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            metadata=entry.metadata or {},
        )


class AuditEntriesRes(BaseModel):
    items: list[AuditEntryRes]
    page_info: PageInfo


class SearchRes(BaseModel):
    roles: list[RoleDefinitionRes] = Field(default_factory=list)
    audit_entries: list[AuditEntryRes] = Field(default_factory=list)
