"""
===============================================================================
TARJETA CRC — api/exception_handlers.py (Excepciones -> RFC7807)
===============================================================================

Responsabilidades:
  - DatabaseError -> 503, RoleAdminError -> 500, cualquier otra -> 500.
  - Loguear con error_id y ocultar el detalle interno en producción.

Colaboradores:
  - crosscutting.error_responses (AppHTTPException, app_exception_handler)
  - crosscutting.exceptions (RoleAdminError, DatabaseError)
  - crosscutting.config.get_settings
===============================================================================
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    app_exception_handler,
)
from ..crosscutting.exceptions import DatabaseError, RoleAdminError
from ..crosscutting.logger import logger

_SERVICE_ERRORS: tuple[tuple[type[RoleAdminError], ErrorCode, int], ...] = (
    (DatabaseError, ErrorCode.DATABASE_ERROR, 503),
    (RoleAdminError, ErrorCode.INTERNAL_ERROR, 500),
)


def _public_detail(message: str, fallback: str) -> str:
    return fallback if get_settings().is_production() else message


def _service_error_handler(code: ErrorCode, status_code: int):
    async def handler(request: Request, exc: RoleAdminError) -> JSONResponse:
        logger.error(
            "Error de servicio %s",
            exc.error_code,
            extra={"code": code.value, "error_id": exc.error_id, "error": exc.message},
        )
        problem = AppHTTPException(
            status_code=status_code,
            code=code,
            detail=_public_detail(exc.message, code.value),
            errors=[{"error_id": exc.error_id}],
        )
        return await app_exception_handler(request, problem)

    return handler


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Excepción no controlada: %s", type(exc).__name__)
    problem = AppHTTPException(
        status_code=500,
        code=ErrorCode.INTERNAL_ERROR,
        detail=_public_detail(str(exc), "Error interno."),
    )
    return await app_exception_handler(request, problem)


def register_exception_handlers(app: FastAPI) -> None:
    for exc_type, code, status_code in _SERVICE_ERRORS:
        app.add_exception_handler(exc_type, _service_error_handler(code, status_code))
    app.add_exception_handler(AppHTTPException, app_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["register_exception_handlers"]
