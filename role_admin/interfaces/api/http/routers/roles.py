"""
===============================================================================
TARJETA CRC — role_admin/interfaces/api/http/routers/roles.py
===============================================================================

Name:
    Roles Router

Responsibilities:
    - Endpoints de gestión de roles (assign / remove / downgrade / bulk).
    - Endpoints de consulta (listado por rol, conteos, catálogo, auditoría, búsqueda).
    - Traducir resultados de use cases a DTOs y errores a RFC7807.

Collaborators:
    - container (factories de use cases)
    - identity.actor.require_actor
    - error_mapping.raise_role_error
    - schemas.roles

Notes:
    - La autorización vive en los use cases (rol re-leído del store).
    - Mutaciones responden 200 con status applied | unchanged | pending_confirmation.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from .....application.usecases.roles import (
    AssignRoleUseCase,
    BulkAssignRoleUseCase,
    DowngradeRoleUseCase,
    ListRoleAssignmentsUseCase,
    QueryAuditLogUseCase,
    RemoveRoleUseCase,
    RoleAssignmentResult,
    RoleCountsUseCase,
    SearchScope,
    SearchUseCase,
)
from .....container import (
    get_assign_role_use_case,
    get_bulk_assign_role_use_case,
    get_downgrade_role_use_case,
    get_list_role_assignments_use_case,
    get_query_audit_log_use_case,
    get_remove_role_use_case,
    get_role_counts_use_case,
    get_search_use_case,
)
from .....domain import role_catalog
from .....domain.audit import AuditQuery
from .....domain.entities import Role
from .....identity.actor import Actor, require_actor
from ..error_mapping import raise_role_error
from ..schemas.roles import (
    AssignRoleReq,
    AuditEntriesRes,
    AuditEntryRes,
    BulkAssignReq,
    BulkAssignRes,
    BulkItemFailureRes,
    DowngradeRoleReq,
    PendingConfirmationRes,
    RoleAssignmentRes,
    RoleAssignmentsRes,
    RoleCatalogRes,
    RoleCountsRes,
    RoleDefinitionRes,
    RoleMutationRes,
    SearchRes,
)

router = APIRouter(prefix="/roles", tags=["roles"])


def _to_mutation_res(result: RoleAssignmentResult) -> RoleMutationRes:
    return RoleMutationRes(
        status=result.status,
        assignment=(
            RoleAssignmentRes.from_domain(result.assignment)
            if result.assignment
            else None
        ),
        previous_role=result.previous_role,
        pending=(
            PendingConfirmationRes.from_domain(result.pending)
            if result.pending
            else None
        ),
    )


# =============================================================================
# Mutaciones
# =============================================================================


@router.put("/assignments/{user_id}", response_model=RoleMutationRes)
def assign_role(
    user_id: UUID,
    req: AssignRoleReq,
    actor: Actor = Depends(require_actor),
    use_case: AssignRoleUseCase = Depends(get_assign_role_use_case),
):
    result = use_case.execute(
        actor.user_id, user_id, req.role, confirmed=req.confirmed
    )
    if result.error:
        raise_role_error(result.error)
    return _to_mutation_res(result)


@router.delete("/assignments/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_role(
    user_id: UUID,
    actor: Actor = Depends(require_actor),
    use_case: RemoveRoleUseCase = Depends(get_remove_role_use_case),
):
    result = use_case.execute(actor.user_id, user_id)
    if result.error:
        raise_role_error(result.error)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/assignments/{user_id}/downgrade", response_model=RoleMutationRes)
def downgrade_role(
    user_id: UUID,
    req: DowngradeRoleReq | None = None,
    actor: Actor = Depends(require_actor),
    use_case: DowngradeRoleUseCase = Depends(get_downgrade_role_use_case),
):
    confirmed = bool(req and req.confirmed)
    result = use_case.execute(actor.user_id, user_id, confirmed=confirmed)
    if result.error:
        raise_role_error(result.error)
    return _to_mutation_res(result)


@router.post("/assignments/bulk", response_model=BulkAssignRes)
def bulk_assign(
    req: BulkAssignReq,
    actor: Actor = Depends(require_actor),
    use_case: BulkAssignRoleUseCase = Depends(get_bulk_assign_role_use_case),
):
    result = use_case.execute(
        actor.user_id, req.user_ids, req.role, confirmed=req.confirmed
    )
    if result.error:
        raise_role_error(result.error)
    return BulkAssignRes(
        succeeded=result.succeeded,
        failed=[BulkItemFailureRes.from_domain(f) for f in result.failed],
    )


# =============================================================================
# Consultas
# =============================================================================


@router.get("/assignments", response_model=RoleAssignmentsRes)
def list_role_assignments(
    role: Role = Query(...),
    limit: int = Query(50, ge=1, le=200),
    cursor: str | None = Query(None),
    actor: Actor = Depends(require_actor),
    use_case: ListRoleAssignmentsUseCase = Depends(get_list_role_assignments_use_case),
):
    result = use_case.execute(actor.user_id, role, limit=limit, cursor=cursor)
    if result.error:
        raise_role_error(result.error)
    return RoleAssignmentsRes(
        items=[RoleAssignmentRes.from_domain(a) for a in result.page.items],
        page_info=result.page.page_info,
    )


@router.get("/counts", response_model=RoleCountsRes)
def role_counts(
    actor: Actor = Depends(require_actor),
    use_case: RoleCountsUseCase = Depends(get_role_counts_use_case),
):
    result = use_case.execute(actor.user_id)
    if result.error:
        raise_role_error(result.error)
    return RoleCountsRes(counts=result.counts, total=result.total)


@router.get("/catalog", response_model=RoleCatalogRes)
def role_catalog_definitions(_actor: Actor = Depends(require_actor)):
    """Definiciones de rol en orden jerárquico (owner primero)."""
    return RoleCatalogRes(
        roles=[RoleDefinitionRes.from_domain(d) for d in role_catalog.all_definitions()]
    )


@router.get("/audit", response_model=AuditEntriesRes)
def query_audit_log(
    entity_type: str | None = Query(None),
    actor_user_id: UUID | None = Query(None),
    action: str | None = Query(None),
    start_at: datetime | None = Query(None),
    end_at: datetime | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    cursor: str | None = Query(None),
    actor: Actor = Depends(require_actor),
    use_case: QueryAuditLogUseCase = Depends(get_query_audit_log_use_case),
):
    query = AuditQuery(
        entity_type=entity_type,
        actor_user_id=actor_user_id,
        action=action,
        start_at=start_at,
        end_at=end_at,
    )
    result = use_case.execute(actor.user_id, query, limit=limit, cursor=cursor)
    if result.error:
        raise_role_error(result.error)
    return AuditEntriesRes(
        items=[AuditEntryRes.from_domain(e) for e in result.page.items],
        page_info=result.page.page_info,
    )


@router.get("/search", response_model=SearchRes)
def search(
    q: str = Query(..., min_length=1, max_length=200),
    scope: SearchScope = Query(SearchScope.ALL),
    limit: int = Query(50, ge=1, le=200),
    actor: Actor = Depends(require_actor),
    use_case: SearchUseCase = Depends(get_search_use_case),
):
    result = use_case.execute(actor.user_id, q, scope=scope, limit=limit)
    if result.error:
        raise_role_error(result.error)
    return SearchRes(
        roles=[RoleDefinitionRes.from_domain(d) for d in result.roles],
        audit_entries=[AuditEntryRes.from_domain(e) for e in result.audit_entries],
    )
