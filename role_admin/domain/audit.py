"""
===============================================================================
TARJETA CRC — domain/audit.py
===============================================================================

Módulo:
    Modelos de Auditoría (Dominio)

Responsabilidades:
    - Definir la entrada de auditoría (AuditEntry) y su vocabulario de acciones.
    - Definir filtros de consulta (AuditQuery).
    - Mantener el contrato de auditoría independiente de infraestructura.

Colaboradores:
    - domain.repositories.AuditEntryRepository: persiste y lista entradas.
    - app/audit.py: emite entradas (orquestación best-effort).
    - infra repos: mapean hacia/desde DB.

Notas:
    - Auditoría es append-only (no se edita ni se borra).
    - id lo asigna el repositorio (secuencia monótona): desempata timestamps iguales.
    - metadata es flexible (dict).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


class AuditAction(str, Enum):
    """Acciones que afectan privilegios."""

    ROLE_ASSIGNED = "role_assigned"
    ROLE_UPDATED = "role_updated"
    ROLE_REMOVED = "role_removed"
    ROLE_DOWNGRADED = "role_downgraded"


ENTITY_TYPE_ROLE_ASSIGNMENT = "role_assignment"


@dataclass(frozen=True, slots=True)
class AuditEntry:
    """Entrada inmutable del log de auditoría."""

    action: str
    entity_type: str
    entity_id: str
    actor_user_id: UUID | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    id: int | None = None
    timestamp: datetime | None = None


@dataclass(frozen=True, slots=True)
class AuditQuery:
    """Filtros opcionales para listar auditoría (todos combinables con AND)."""

    entity_type: str | None = None
    actor_user_id: UUID | None = None
    action: str | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None
