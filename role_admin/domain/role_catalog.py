"""
===============================================================================
TARJETA CRC — domain/role_catalog.py
===============================================================================

Módulo:
    Catálogo de Roles (jerarquía + matriz de permisos)

Responsabilidades:
    - Definir la jerarquía total owner > admin > moderator > user.
    - Definir la matriz de permisos (recurso x acción) de cada rol.
    - Proveer comparadores puros (hierarchy_index / compare / next_lower).

Colaboradores:
    - domain.entities.Role / RoleComparison
    - domain.role_policy: usa compare() para detectar auto-degradación.
    - application/usecases/roles: downgrade y autorización del actor.

Notas:
    - Módulo puro: sin estado mutable, sin side effects, sin errores.
    - Índice menor = más privilegio (owner = 0).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

from .entities import Role, RoleComparison


class Resource(str, Enum):
    """Recursos administrables de la plataforma."""

    USERS = "users"
    PROJECTS = "projects"
    SETTINGS = "settings"
    SECURITY = "security"
    ROLES = "roles"


class Action(str, Enum):
    """Acciones CRUD sobre un recurso."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


_CRUD = frozenset(Action)
_NONE: frozenset[Action] = frozenset()


@dataclass(frozen=True, slots=True)
class RoleDefinition:
    """Definición de rol: nombre visible, descripción y matriz de permisos."""

    role: Role
    name: str
    description: str
    permissions: Mapping[Resource, frozenset[Action]] = field(default_factory=dict)

    def allows(self, resource: Resource, action: Action) -> bool:
        return action in self.permissions.get(resource, _NONE)


# Orden de la tupla == jerarquía. Es la única fuente de verdad del orden.
ROLE_HIERARCHY: tuple[Role, ...] = (
    Role.OWNER,
    Role.ADMIN,
    Role.MODERATOR,
    Role.USER,
)

_INDEX: dict[Role, int] = {role: idx for idx, role in enumerate(ROLE_HIERARCHY)}

ROLE_DEFINITIONS: dict[Role, RoleDefinition] = {
    Role.OWNER: RoleDefinition(
        role=Role.OWNER,
        name="Owner",
        description="Full platform access with all permissions",
        permissions={resource: _CRUD for resource in Resource},
    ),
    Role.ADMIN: RoleDefinition(
        role=Role.ADMIN,
        name="Admin",
        description="Administrative access with limited security controls",
        permissions={
            Resource.USERS: frozenset({Action.CREATE, Action.READ, Action.UPDATE}),
            Resource.PROJECTS: _CRUD,
            Resource.SETTINGS: frozenset({Action.READ, Action.UPDATE}),
            Resource.SECURITY: frozenset({Action.READ}),
            Resource.ROLES: frozenset({Action.READ}),
        },
    ),
    Role.MODERATOR: RoleDefinition(
        role=Role.MODERATOR,
        name="Moderator",
        description="Content moderation and user management",
        permissions={
            Resource.USERS: frozenset({Action.READ, Action.UPDATE}),
            Resource.PROJECTS: frozenset({Action.READ, Action.UPDATE}),
            Resource.SETTINGS: frozenset({Action.READ}),
            Resource.SECURITY: frozenset({Action.READ}),
            Resource.ROLES: frozenset({Action.READ}),
        },
    ),
    Role.USER: RoleDefinition(
        role=Role.USER,
        name="User",
        description="Standard user with basic access",
        permissions={Resource.PROJECTS: _CRUD},
    ),
}

# Quién puede cambiar roles de otros (owner/admin).
_ROLE_MANAGERS: frozenset[Role] = frozenset({Role.OWNER, Role.ADMIN})


def definition(role: Role) -> RoleDefinition:
    """Devuelve la definición (matriz de permisos) de un rol."""
    return ROLE_DEFINITIONS[role]


def all_definitions() -> list[RoleDefinition]:
    """Definiciones en orden jerárquico (mayor privilegio primero)."""
    return [ROLE_DEFINITIONS[role] for role in ROLE_HIERARCHY]


def hierarchy_index(role: Role) -> int:
    return _INDEX[role]


def role_at(index: int) -> Role:
    return ROLE_HIERARCHY[index]


def lowest_role() -> Role:
    return ROLE_HIERARCHY[-1]


def next_lower(role: Role) -> Role | None:
    """Rol inmediatamente inferior, o None si ya es el más bajo."""
    idx = hierarchy_index(role) + 1
    if idx >= len(ROLE_HIERARCHY):
        return None
    return role_at(idx)


def compare(a: Role, b: Role) -> RoleComparison:
    """
    Compara a contra b por privilegio.

    compare(USER, ADMIN) -> LOWER  (user tiene menos privilegio que admin)
    """
    ia, ib = hierarchy_index(a), hierarchy_index(b)
    if ia == ib:
        return RoleComparison.EQUAL
    return RoleComparison.HIGHER if ia < ib else RoleComparison.LOWER


def has_permission(role: Role, resource: Resource, action: Action) -> bool:
    return definition(role).allows(resource, action)


def can_manage_roles(role: Role | None) -> bool:
    """Solo owner/admin pueden asignar, quitar o degradar roles."""
    return role is not None and role in _ROLE_MANAGERS
