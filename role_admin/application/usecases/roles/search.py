"""
===============================================================================
USE CASE: Search (roles catalog / audit log)
===============================================================================

Búsqueda por keyword, case-insensitive, por substring:
  - scope=roles: nombre/descripción/valor de las definiciones de rol.
  - scope=audit: action / entity_type / entity_id de la auditoría.
  - scope=all: ambos.

Reglas:
  - Keyword vacío (o solo espacios) -> VALIDATION_ERROR.
  - roles requiere READ sobre "roles"; audit requiere READ sobre "security".
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from uuid import UUID

from ....crosscutting.exceptions import DatabaseError
from ....domain import role_catalog
from ....domain.repositories import AuditEntryRepository, RoleAssignmentRepository
from ....domain.role_catalog import Resource, RoleDefinition
from .role_access import authorize_reader, store_failure, validation_error
from .role_results import SearchResult

DEFAULT_SEARCH_LIMIT = 50


class SearchScope(str, Enum):
    ROLES = "roles"
    AUDIT = "audit"
    ALL = "all"


def _matches_definition(definition: RoleDefinition, needle: str) -> bool:
    return any(
        needle in text.lower()
        for text in (definition.role.value, definition.name, definition.description)
    )


class SearchUseCase:
    def __init__(
        self,
        role_repository: RoleAssignmentRepository,
        audit_repository: AuditEntryRepository,
    ) -> None:
        self._roles = role_repository
        self._audit = audit_repository

    def execute(
        self,
        actor_id: UUID | None,
        keyword: str,
        *,
        scope: SearchScope = SearchScope.ALL,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> SearchResult:
        needle = (keyword or "").strip().lower()
        if not needle:
            return SearchResult(error=validation_error("Search keyword is required."))

        include_roles = scope in (SearchScope.ROLES, SearchScope.ALL)
        include_audit = scope in (SearchScope.AUDIT, SearchScope.ALL)

        if include_roles:
            error = authorize_reader(self._roles, actor_id, Resource.ROLES)
            if error is not None:
                return SearchResult(error=error)
        if include_audit:
            error = authorize_reader(self._roles, actor_id, Resource.SECURITY)
            if error is not None:
                return SearchResult(error=error)

        result = SearchResult()
        if include_roles:
            result.roles = [
                d for d in role_catalog.all_definitions() if _matches_definition(d, needle)
            ]
        if include_audit:
            try:
                result.audit_entries = self._audit.search_entries(needle, limit=limit)
            except DatabaseError as exc:
                return SearchResult(error=store_failure(exc))
        return result
