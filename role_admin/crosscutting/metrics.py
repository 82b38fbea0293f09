"""
===============================================================================
TARJETA CRC — crosscutting/metrics.py (Prometheus)
===============================================================================

Responsabilidades:
    - Registry propio con las series del servicio (HTTP, roles, bulk, auditoría).
    - Helpers record_* para que el resto del código no toque prometheus_client.
    - Labels de baja cardinalidad: nunca user_id ni paths con ids.

Colaboradores:
    - crosscutting.middleware: registra latencia y conteo HTTP.
    - application/usecases/roles: mutaciones, denegaciones, confirmaciones, bulk.
    - role_admin/audit.py: fallas de escritura de auditoría.
===============================================================================
"""

from __future__ import annotations

import re

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

_registry = CollectorRegistry()

# -----------------------------------------------------------------------------
# HTTP
# -----------------------------------------------------------------------------
_requests_total = Counter(
    "role_admin_requests_total",
    "Total de requests HTTP",
    ["endpoint", "method", "status"],
    registry=_registry,
)

_request_latency = Histogram(
    "role_admin_request_latency_seconds",
    "Latencia de requests HTTP (segundos)",
    ["endpoint", "method"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
    registry=_registry,
)

# -----------------------------------------------------------------------------
# Roles
# -----------------------------------------------------------------------------
_role_mutations_total = Counter(
    "role_admin_role_mutations_total",
    "Mutaciones de rol aplicadas",
    ["action"],
    registry=_registry,
)

_guard_denials_total = Counter(
    "role_admin_guard_denials_total",
    "Cambios rechazados por invariantes o autorización",
    ["reason"],
    registry=_registry,
)

_pending_confirmations_total = Counter(
    "role_admin_pending_confirmations_total",
    "Auto-degradaciones devueltas como pendientes de confirmación",
    registry=_registry,
)

_bulk_items_total = Counter(
    "role_admin_bulk_items_total",
    "Items procesados por asignación masiva",
    ["outcome"],
    registry=_registry,
)

_bulk_duration = Histogram(
    "role_admin_bulk_duration_seconds",
    "Duración de una asignación masiva (segundos)",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
    registry=_registry,
)

# -----------------------------------------------------------------------------
# Auditoría
# -----------------------------------------------------------------------------
_audit_write_failures_total = Counter(
    "role_admin_audit_write_failures",
    "Entradas de auditoría que no pudieron persistirse tras los reintentos",
    registry=_registry,
)


# -----------------------------------------------------------------------------
# API pública (helpers de registro)
# -----------------------------------------------------------------------------


def record_request_metrics(
    endpoint: str,
    method: str,
    status_code: int,
    latency_seconds: float,
) -> None:
    """Registra métricas HTTP.

    - endpoint se normaliza para no explotar cardinalidad.
    - status se agrupa por 2xx/4xx/5xx.
    """
    normalized = _normalize_endpoint(endpoint)
    _requests_total.labels(
        endpoint=normalized, method=method, status=_status_bucket(status_code)
    ).inc()
    _request_latency.labels(endpoint=normalized, method=method).observe(
        latency_seconds
    )


def record_role_mutation(action: str) -> None:
    _role_mutations_total.labels(action=action).inc()


def record_guard_denial(reason: str) -> None:
    """reason: código estable de error (LAST_OWNER_PROTECTED, FORBIDDEN, ...)."""
    _guard_denials_total.labels(reason=reason).inc()


def record_pending_confirmation() -> None:
    _pending_confirmations_total.inc()


def record_bulk_item(outcome: str, count: int = 1) -> None:
    """outcome: succeeded | failed."""
    if count > 0:
        _bulk_items_total.labels(outcome=outcome).inc(count)


def observe_bulk_duration(seconds: float) -> None:
    _bulk_duration.observe(seconds)


def record_audit_write_failure(count: int = 1) -> None:
    _audit_write_failures_total.inc(count)


# -----------------------------------------------------------------------------
# Helpers internos
# -----------------------------------------------------------------------------


def _normalize_endpoint(path: str) -> str:
    """Reemplaza UUIDs e IDs numéricos por `{id}`."""
    path = re.sub(
        r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
        "{id}",
        path,
        flags=re.IGNORECASE,
    )
    path = re.sub(r"/\d+", "/{id}", path)
    return path


def _status_bucket(code: int) -> str:
    return f"{code // 100}xx" if 100 <= code < 600 else "other"


# -----------------------------------------------------------------------------
# Exposición del endpoint /metrics
# -----------------------------------------------------------------------------


def get_metrics_response() -> tuple[bytes, str]:
    """Genera el body y content-type para /metrics."""
    return generate_latest(_registry), CONTENT_TYPE_LATEST
