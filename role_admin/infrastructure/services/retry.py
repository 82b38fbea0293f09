"""
===============================================================================
TARJETA CRC — infrastructure/services/retry.py (Reintentos con backoff)
===============================================================================

Responsabilidades:
  - Clasificar errores en transitorios (reintentar) o permanentes (fallar ya).
  - Fabricar decorators tenacity con backoff exponencial + jitter.
  - Ofrecer un predicado estricto para escrituras no idempotentes (append de
    auditoría): solo fallas que no llegaron a commit.

Colaboradores:
  - tenacity
  - psycopg (jerarquía de errores del driver)
  - psycopg_pool.PoolTimeout (conexión nunca obtenida)
  - crosscutting.config.get_settings (RETRY_*)
  - Usuarios: repositories/postgres/role_assignment.py (transacción completa),
    role_admin/audit.py (append best-effort).

Reglas:
  - Una transacción reintentada se re-ejecuta entera, incluido el guard.
  - Violaciones de constraint y errores de programación nunca se reintentan.
  - is_uncommitted_failure rechaza errores ambiguos (conexión perdida con el
    INSERT ya enviado): el append puede perder una entrada, nunca duplicarla.
===============================================================================
"""

from __future__ import annotations

from typing import Callable, TypeVar

import psycopg
from psycopg import errors as pg_errors
from psycopg_pool import PoolTimeout
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from ...crosscutting.config import get_settings
from ...crosscutting.exceptions import RoleAdminError
from ...crosscutting.logger import logger

T = TypeVar("T")

_PERMANENT: tuple[type[BaseException], ...] = (
    psycopg.IntegrityError,
    psycopg.ProgrammingError,
    psycopg.DataError,
)

_TRANSIENT: tuple[type[BaseException], ...] = (
    pg_errors.SerializationFailure,
    pg_errors.DeadlockDetected,
    pg_errors.LockNotAvailable,
    pg_errors.QueryCanceled,
    psycopg.OperationalError,
    TimeoutError,
    ConnectionError,
)

# Fallas que garantizan que la sentencia no hizo commit: la conexión nunca se
# obtuvo o el servidor abortó la transacción. Un INSERT no idempotente solo se
# reintenta ante estas.
_NOT_COMMITTED: tuple[type[BaseException], ...] = (
    PoolTimeout,
    ConnectionRefusedError,
    pg_errors.SerializationFailure,
    pg_errors.DeadlockDetected,
    pg_errors.LockNotAvailable,
)

# Errores de terceros (pool, red) sin jerarquía común: se reconocen por nombre.
_TRANSIENT_NAME_HINTS = ("timeout", "connection", "unavailable")


def _unwrap(exc: BaseException) -> BaseException:
    """Sigue original_error / __cause__ de los errores del servicio."""
    seen: set[int] = set()
    while isinstance(exc, RoleAdminError) and id(exc) not in seen:
        seen.add(id(exc))
        inner = exc.original_error or exc.__cause__
        if inner is None:
            break
        exc = inner
    return exc


def is_transient_error(exception: BaseException) -> bool:
    exc = _unwrap(exception)
    if isinstance(exc, _PERMANENT):
        return False
    if isinstance(exc, _TRANSIENT):
        return True
    name = type(exc).__name__.lower()
    return any(hint in name for hint in _TRANSIENT_NAME_HINTS)


def is_uncommitted_failure(exception: BaseException) -> bool:
    """True solo si la escritura fallida seguro no llegó a commit."""
    return isinstance(_unwrap(exception), _NOT_COMMITTED)


def _before_sleep(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.warning(
        "Reintentando %s (intento %d)",
        getattr(state.fn, "__name__", "?"),
        state.attempt_number,
        extra={
            "sleep_seconds": round(state.next_action.sleep, 3)
            if state.next_action
            else 0.0,
            "error_type": type(exc).__name__ if exc else None,
            "error": str(exc) if exc else None,
        },
    )


def create_retry_decorator(
    max_attempts: int | None = None,
    base_delay: float | None = None,
    max_delay: float | None = None,
    *,
    predicate: Callable[[BaseException], bool] = is_transient_error,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator tenacity; los argumentos en None toman RETRY_* de Settings.

    Propaga la última excepción cuando se agotan los intentos.
    """
    settings = get_settings()
    attempts = settings.retry_max_attempts if max_attempts is None else max_attempts
    initial = settings.retry_base_delay_seconds if base_delay is None else base_delay
    ceiling = settings.retry_max_delay_seconds if max_delay is None else max_delay

    if attempts < 1:
        raise ValueError("max_attempts must be >= 1")
    if initial < 0 or ceiling < 0:
        raise ValueError("retry delays must be >= 0")

    return retry(
        retry=retry_if_exception(predicate),
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=float(initial), max=float(ceiling))
        + wait_random(0, float(initial)),
        before_sleep=_before_sleep,
        reraise=True,
    )
