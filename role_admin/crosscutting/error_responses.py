"""
===============================================================================
TARJETA CRC — crosscutting/error_responses.py (Problem Details, RFC 7807)
===============================================================================

Responsabilidades:
  - Catálogo de códigos estables (ErrorCode) para que el cliente decida por
    `code` (p. ej. reintentar con confirmed=true).
  - AppHTTPException + factories de los status que usa la API.
  - Serializar como application/problem+json con request_id en errors[].

Colaboradores:
  - interfaces/api/http/error_mapping.py (RoleError -> AppHTTPException)
  - api/exception_handlers.py
  - crosscutting/middleware.py (request.state.request_id)
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

PROBLEM_JSON_MEDIA_TYPE = "application/problem+json"

ErrorList = list[dict[str, Any]]


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    LAST_OWNER_PROTECTED = "LAST_OWNER_PROTECTED"
    SELF_DEMOTION_NEEDS_CONFIRMATION = "SELF_DEMOTION_NEEDS_CONFIRMATION"
    ALREADY_LOWEST = "ALREADY_LOWEST"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class ErrorDetail(BaseModel):
    """Problem Details + `code` estable y `errors` con contexto machine-readable."""

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    code: ErrorCode
    instance: str | None = None
    errors: ErrorList | None = None


OPENAPI_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status: {
        "description": f"{label} (problem+json)",
        "model": ErrorDetail,
        "content": {
            PROBLEM_JSON_MEDIA_TYPE: {
                "schema": {"$ref": "#/components/schemas/ErrorDetail"}
            }
        },
    }
    for status, label in (
        ("401", "Unauthorized"),
        ("403", "Forbidden"),
        ("404", "Not Found"),
        ("409", "Conflict"),
        ("422", "Validation Error"),
        ("503", "Database Unavailable"),
    )
}


class AppHTTPException(HTTPException):
    """HTTPException con ErrorCode estable y detalles opcionales."""

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        detail: str,
        errors: ErrorList | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.code = code
        self.errors = errors


def validation_error(detail: str, errors: ErrorList | None = None) -> AppHTTPException:
    return AppHTTPException(422, ErrorCode.VALIDATION_ERROR, detail, errors)


def conflict(
    code: ErrorCode, detail: str, errors: ErrorList | None = None
) -> AppHTTPException:
    return AppHTTPException(409, code, detail, errors)


def unauthorized(detail: str = "Autenticación requerida.") -> AppHTTPException:
    return AppHTTPException(
        401, ErrorCode.UNAUTHORIZED, detail, headers={"WWW-Authenticate": "Bearer"}
    )


def forbidden(detail: str = "Acceso denegado.") -> AppHTTPException:
    return AppHTTPException(403, ErrorCode.FORBIDDEN, detail)


def database_error(
    detail: str = "Store de roles no disponible.", errors: ErrorList | None = None
) -> AppHTTPException:
    return AppHTTPException(503, ErrorCode.DATABASE_ERROR, detail, errors)


async def app_exception_handler(
    request: Request, exc: AppHTTPException
) -> JSONResponse:
    errors = list(exc.errors or [])
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        errors.append({"request_id": request_id})

    problem = ErrorDetail(
        type=f"urn:role-admin:error:{exc.code.value.lower()}",
        title=exc.code.value.replace("_", " ").capitalize(),
        status=exc.status_code,
        detail=str(exc.detail),
        code=exc.code,
        instance=request.url.path,
        errors=errors or None,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=problem.model_dump(mode="json", exclude_none=True),
        headers=exc.headers,
        media_type=PROBLEM_JSON_MEDIA_TYPE,
    )
