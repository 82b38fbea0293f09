"""
===============================================================================
TARJETA CRC — crosscutting/middleware.py (Contexto HTTP)
===============================================================================

Responsabilidades:
  - Aceptar un X-Request-Id del cliente (o generar uno) y devolverlo.
  - Abrir el contexto del request para los logs y cerrarlo siempre.
  - Registrar latencia y status por template de ruta (/roles/assignments/{user_id}).

Colaboradores:
  - role_admin/context.py
  - crosscutting/metrics.record_request_metrics
  - crosscutting/logger
===============================================================================
"""

from __future__ import annotations

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ..context import clear_context, set_request_context
from .logger import logger
from .metrics import record_request_metrics

REQUEST_ID_HEADER = "X-Request-Id"
_MAX_REQUEST_ID_LEN = 128
# Sondas de infraestructura: se miden pero no se loguean.
_UNLOGGED_PATHS = frozenset({"/healthz", "/metrics"})


def resolve_request_id(raw: str | None) -> str:
    candidate = (raw or "").strip()
    if candidate and len(candidate) <= _MAX_REQUEST_ID_LEN:
        return candidate
    return uuid.uuid4().hex


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        set_request_context(
            request_id=request_id, method=request.method, path=request.url.path
        )

        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        except Exception:
            logger.exception("Request abortado por excepción no manejada")
            raise
        finally:
            elapsed = time.perf_counter() - started
            record_request_metrics(
                endpoint=_route_template(request),
                method=request.method,
                status_code=status_code,
                latency_seconds=elapsed,
            )
            if request.url.path not in _UNLOGGED_PATHS:
                logger.info(
                    "%s %s -> %s",
                    request.method,
                    request.url.path,
                    status_code,
                    extra={
                        "status_code": status_code,
                        "latency_ms": round(elapsed * 1000, 2),
                    },
                )
            clear_context()
