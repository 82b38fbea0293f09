"""
===============================================================================
TARJETA CRC — infrastructure/db/pool.py (Pool de conexiones)
===============================================================================

Responsabilidades:
  - Un único ConnectionPool por proceso, abierto en el lifespan de la app.
  - Aplicar statement_timeout a cada conexión nueva.

Colaboradores:
  - psycopg_pool.ConnectionPool
  - crosscutting.config.get_settings (timeout)
  - api/main.py (init_pool / close_pool)

Reglas:
  - Doble init o uso sin init fallan con errores tipados (ver errors.py).
===============================================================================
"""

from __future__ import annotations

import threading
from typing import Optional

import psycopg
from psycopg import sql
from psycopg_pool import ConnectionPool

from ...crosscutting.config import get_settings
from ...crosscutting.logger import logger
from .errors import PoolAlreadyInitializedError, PoolNotInitializedError

_state_lock = threading.Lock()
_pool: Optional[ConnectionPool] = None


def _apply_session_settings(conn: psycopg.Connection) -> None:
    timeout_ms = int(get_settings().db_statement_timeout_ms)
    if timeout_ms <= 0:
        return
    conn.execute(
        sql.SQL("SET statement_timeout = {}").format(sql.Literal(timeout_ms))
    )
    conn.commit()


def init_pool(database_url: str, min_size: int, max_size: int) -> ConnectionPool:
    global _pool

    with _state_lock:
        if _pool is not None:
            raise PoolAlreadyInitializedError("init_pool() ya fue llamado.")
        _pool = ConnectionPool(
            conninfo=database_url,
            min_size=min_size,
            max_size=max_size,
            configure=_apply_session_settings,
            open=True,
            name="role-admin",
        )

    logger.info("Pool DB abierto", extra={"min_size": min_size, "max_size": max_size})
    return _pool


def get_pool() -> ConnectionPool:
    pool = _pool
    if pool is None:
        raise PoolNotInitializedError("Pool DB sin inicializar (falta init_pool()).")
    return pool


def close_pool() -> None:
    """Idempotente: sin pool abierto no hace nada."""
    global _pool

    with _state_lock:
        pool, _pool = _pool, None
    if pool is not None:
        pool.close()
        logger.info("Pool DB cerrado")
