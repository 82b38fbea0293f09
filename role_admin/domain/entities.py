"""
===============================================================================
TARJETA CRC — domain/entities.py
===============================================================================

Módulo:
    Entidades del Dominio (Role, RoleAssignment)

Responsabilidades:
    - Definir el catálogo cerrado de roles de la plataforma.
    - Definir la asignación usuario -> rol (una fila por usuario).
    - Mantener tipos claros para casos de uso y repositorios.

Colaboradores:
    - domain.role_catalog: orden jerárquico y matriz de permisos.
    - domain.repositories: persisten/recuperan estas entidades.
    - application/usecases/roles: construyen/consumen estas entidades.

Principios:
    - Sin dependencias a DB/FastAPI.
    - Un usuario sin fila de asignación está "Unassigned" (no hay rol implícito).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID


def _utcnow() -> datetime:
    """Fecha/hora UTC (helper interno)."""
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Role
# ---------------------------------------------------------------------------


class Role(str, Enum):
    """
    Roles de la plataforma.

    El orden de declaración ES la jerarquía (owner > admin > moderator > user).
    No comparar por índice a mano: usar domain.role_catalog.compare().
    """

    OWNER = "owner"
    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"

    @classmethod
    def parse(cls, raw: str | None) -> Optional["Role"]:
        """Parseo tolerante (strip + lower). Devuelve None si no es un rol conocido."""
        if not raw or not isinstance(raw, str):
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


class RoleComparison(str, Enum):
    """Resultado de comparar dos roles por privilegio."""

    LOWER = "lower"
    EQUAL = "equal"
    HIGHER = "higher"


# ---------------------------------------------------------------------------
# RoleAssignment
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RoleAssignment:
    """
    Asignación de rol de un usuario.

    Invariante: a lo sumo una asignación por user_id (PK en Postgres).
    La identidad de la fila se conserva en reasignaciones: cambia role/updated_at.
    """

    user_id: UUID
    role: Role
    created_at: datetime | None = None
    updated_at: datetime | None = None
    assigned_by: UUID | None = None

    def with_role(
        self, role: Role, *, assigned_by: UUID | None = None, at: datetime | None = None
    ) -> "RoleAssignment":
        """Copia con nuevo rol (misma identidad, nuevo timestamp)."""
        return replace(
            self,
            role=role,
            updated_at=at or _utcnow(),
            assigned_by=assigned_by,
        )

    @classmethod
    def new(
        cls, user_id: UUID, role: Role, *, assigned_by: UUID | None = None
    ) -> "RoleAssignment":
        now = _utcnow()
        return cls(
            user_id=user_id,
            role=role,
            created_at=now,
            updated_at=now,
            assigned_by=assigned_by,
        )
