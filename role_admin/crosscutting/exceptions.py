"""
===============================================================================
TARJETA CRC — crosscutting/exceptions.py (Errores internos)
===============================================================================

Responsabilidades:
  - Base RoleAdminError: error_code estable + error_id para cruzar con logs.
  - DatabaseError: lo lanza la infraestructura y los casos de uso lo
    traducen a STORE_FAILURE.

Colaboradores:
  - infrastructure/repositories/postgres/*
  - infrastructure/services/retry.py (desenvuelve original_error)
  - api/exception_handlers.py (fallback 503/500)
===============================================================================
"""

from __future__ import annotations

from uuid import uuid4


class RoleAdminError(Exception):
    error_code: str = "ROLE_ADMIN_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_id = error_id or uuid4().hex
        self.original_error = original_error


class DatabaseError(RoleAdminError):
    """Conexión, query, timeout o pool."""

    error_code: str = "DATABASE_ERROR"
