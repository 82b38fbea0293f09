"""
===============================================================================
TARJETA CRC — api/main.py (Aplicación FastAPI)
===============================================================================

Responsabilidades:
  - Armar la app: middleware de contexto, CORS, router /v1, handlers RFC7807.
  - Lifespan: abrir el pool (fuera de test), sembrar el owner inicial, cerrar.
  - Endpoints operativos: /healthz y /metrics.

Colaboradores:
  - interfaces.api.http.router
  - application.bootstrap_owner.ensure_bootstrap_owner
  - infrastructure.db.pool
  - crosscutting (config, logger, metrics, middleware)

Uso:
  uvicorn role_admin.api.main:app
===============================================================================
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..application.bootstrap_owner import ensure_bootstrap_owner
from ..container import get_audit_entry_repository, get_role_assignment_repository
from ..crosscutting.config import get_settings
from ..crosscutting.exceptions import DatabaseError
from ..crosscutting.logger import logger
from ..crosscutting.metrics import get_metrics_response
from ..crosscutting.middleware import REQUEST_ID_HEADER, RequestContextMiddleware
from ..infrastructure.db.pool import close_pool, init_pool
from ..interfaces.api.http.router import router
from .exception_handlers import register_exception_handlers


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    uses_database = not settings.is_test_env()

    if uses_database:
        init_pool(
            database_url=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )
    try:
        ensure_bootstrap_owner(
            get_role_assignment_repository(),
            get_audit_entry_repository(),
            settings.bootstrap_owner_user_id,
        )
        logger.info(
            "Role admin API lista",
            extra={
                "app_env": settings.app_env,
                "version": __version__,
                "bulk_max_targets": settings.bulk_max_targets,
                "bulk_max_concurrency": settings.bulk_max_concurrency,
            },
        )
        yield
    finally:
        if uses_database:
            close_pool()
        logger.info("Role admin API detenida")


def _cors_origins() -> list[str]:
    try:
        return get_settings().get_allowed_origins_list()
    except ValueError:
        # Settings inválidos: el lifespan lo reporta al arrancar.
        return []


def create_app() -> FastAPI:
    application = FastAPI(
        title="Role Admin API",
        version=__version__,
        lifespan=lifespan,
        openapi_tags=[
            {
                "name": "roles",
                "description": "Asignaciones, catálogo, auditoría y búsqueda",
            }
        ],
    )

    # Starlette ejecuta primero el último middleware agregado (CORS).
    application.add_middleware(RequestContextMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
    )

    application.include_router(router, prefix="/v1")
    register_exception_handlers(application)

    @application.get("/healthz", include_in_schema=False)
    def healthz(request: Request) -> dict:
        """Liveness + conectividad con el store de roles."""
        try:
            db_ok = bool(get_role_assignment_repository().ping())
        except DatabaseError as exc:
            logger.warning("Healthcheck: store no disponible", extra={"error": str(exc)})
            db_ok = False
        return {
            "ok": db_ok,
            "db": "connected" if db_ok else "disconnected",
            "request_id": getattr(request.state, "request_id", None),
        }

    @application.get("/metrics", include_in_schema=False)
    def metrics() -> Response:
        body, content_type = get_metrics_response()
        return Response(content=body, media_type=content_type)

    return application


app = create_app()
