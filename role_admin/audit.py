"""
===============================================================================
TARJETA CRC — role_admin/audit.py (Emisión de auditoría)
===============================================================================

Responsabilidades:
  - Construir entradas de auditoría con formato consistente
    (actor / action / entity / metadata {from, to}).
  - Persistir vía AuditEntryRepository (puerto del dominio) con reintentos
    acotados a fallas sin commit (nunca duplica una entrada).
  - “Best-effort”: si la persistencia falla tras los reintentos, NO rompe el
    flujo de negocio; loguea y cuenta la falla en métricas.

Colaboradores:
  - role_admin.domain.audit.AuditEntry
  - role_admin.domain.repositories.AuditEntryRepository
  - role_admin.infrastructure.services.retry (tenacity)
  - role_admin.crosscutting.metrics.record_audit_write_failure

Reglas:
  - Se llama SOLO después de que la mutación de rol hizo commit.
  - Una falla acá jamás revierte la mutación ni cambia el resultado del caso de uso.
===============================================================================
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from .crosscutting.logger import logger
from .crosscutting.metrics import record_audit_write_failure
from .domain.audit import ENTITY_TYPE_ROLE_ASSIGNMENT, AuditAction, AuditEntry
from .domain.repositories import AuditEntryRepository
from .infrastructure.services.retry import (
    create_retry_decorator,
    is_uncommitted_failure,
)


def _sanitize(value: Any) -> Any:
    """
    Convierte valores a tipos serializables para JSON.
    - primitives -> OK
    - Enum(str) -> su value
    - dict/list -> sanitiza recursivamente
    - otros -> str(value)
    """
    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        # Role / AuditAction son str-Enums: guardamos el value plano.
        return getattr(value, "value", value)

    if isinstance(value, dict):
        return {str(k): _sanitize(v) for k, v in value.items()}

    if isinstance(value, (list, tuple)):
        return [_sanitize(v) for v in value]

    return str(value)


def emit_audit_entry(
    repository: AuditEntryRepository | None,
    *,
    action: AuditAction | str,
    target_user_id: UUID,
    actor_user_id: UUID | None = None,
    metadata: dict[str, Any] | None = None,
    entity_type: str = ENTITY_TYPE_ROLE_ASSIGNMENT,
) -> AuditEntry | None:
    """
    Emite una entrada de auditoría.

    Regla clave:
      - Si repository es None o falla al escribir, NO se lanza excepción.
      - Devuelve la entrada persistida (con id/timestamp) o None.
    """
    if repository is None:
        return None

    action_value = action.value if isinstance(action, AuditAction) else str(action)
    entry = AuditEntry(
        action=action_value,
        entity_type=entity_type,
        entity_id=str(target_user_id),
        actor_user_id=actor_user_id,
        metadata=_sanitize(metadata or {}),
    )

    # append no es idempotente: solo se reintenta lo que seguro no hizo commit.
    append = create_retry_decorator(predicate=is_uncommitted_failure)(
        repository.append
    )
    try:
        return append(entry)
    except Exception as exc:
        # Best-effort: logueamos, contamos y seguimos.
        record_audit_write_failure()
        logger.warning(
            "Falló la escritura de la entrada de auditoría",
            extra={
                "action": action_value,
                "entity_id": entry.entity_id,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )
        return None
