"""
===============================================================================
TARJETA CRC — error_mapping.py (UseCase Error -> HTTP RFC7807)
===============================================================================

Responsabilidades:
  - Traducir RoleError (code + message + context) a HTTP Exceptions RFC7807.
  - Centralizar el mapeo para evitar duplicación en routers.
  - Mantener el dominio libre de HTTP.

Reglas:
  - Invariantes / confirmación / rol más bajo -> 409 con code específico.
  - NOT_FOUND -> 404, FORBIDDEN -> 403, VALIDATION_ERROR -> 422.
  - STORE_FAILURE -> 503 (DATABASE_ERROR).
  - El context del error viaja en errors[] (machine-readable).

Colaboradores:
  - application.usecases.roles (RoleError, RoleErrorCode)
  - crosscutting.error_responses (conflict, forbidden, etc.)
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from ....application.usecases.roles import RoleError, RoleErrorCode
from ....crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    conflict,
    database_error,
    forbidden,
    validation_error,
)

_CONFLICT_CODES: dict[RoleErrorCode, ErrorCode] = {
    RoleErrorCode.LAST_OWNER_PROTECTED: ErrorCode.LAST_OWNER_PROTECTED,
    RoleErrorCode.SELF_DEMOTION_NEEDS_CONFIRMATION: ErrorCode.SELF_DEMOTION_NEEDS_CONFIRMATION,
    RoleErrorCode.ALREADY_LOWEST: ErrorCode.ALREADY_LOWEST,
}


def _errors_from(error: RoleError) -> list[dict[str, Any]] | None:
    if not error.context:
        return None
    return [{key: _jsonable(value) for key, value in error.context.items()}]


def _jsonable(value: Any) -> Any:
    """UUID / Enum / listas -> tipos JSON simples."""
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def role_error_to_http(error: RoleError) -> AppHTTPException:
    """Traduce RoleError -> AppHTTPException (sin lanzar)."""
    errors = _errors_from(error)

    if error.code in _CONFLICT_CODES:
        return conflict(_CONFLICT_CODES[error.code], error.message, errors)
    if error.code == RoleErrorCode.NOT_FOUND:
        return AppHTTPException(404, ErrorCode.NOT_FOUND, error.message, errors)
    if error.code == RoleErrorCode.FORBIDDEN:
        return forbidden(error.message)
    if error.code == RoleErrorCode.STORE_FAILURE:
        return database_error(error.message, errors)
    # VALIDATION_ERROR y fallback seguro para códigos nuevos: 422
    return validation_error(error.message, errors)


def raise_role_error(error: RoleError) -> None:
    """Lanza la excepción HTTP correspondiente al RoleError."""
    raise role_error_to_http(error)
