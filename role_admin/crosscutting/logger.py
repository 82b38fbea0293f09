"""
===============================================================================
TARJETA CRC — crosscutting/logger.py (Logging estructurado)
===============================================================================

Responsabilidades:
  - Emitir una línea JSON por evento con el contexto del request.
  - Copiar los campos `extra=` al payload, redactando secretos.
  - Formato texto plano cuando LOG_JSON=false (tests, desarrollo local).

Colaboradores:
  - role_admin/context.get_context_dict
  - stdlib logging

Notas:
  - LOG_LEVEL / LOG_JSON se leen del entorno y no de Settings: el logger
    tiene que existir aunque Settings falle al validar.
===============================================================================
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from ..context import get_context_dict

LOGGER_NAME = "role-admin"

# Atributos que todo LogRecord trae de fábrica; el resto vino por `extra=`.
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}

_SECRET_MARKERS = ("password", "secret", "token", "authorization", "database_url")
_MAX_VALUE_CHARS = 2_000
_MAX_DEPTH = 4


def redact(value: Any, key: str = "", depth: int = 0) -> Any:
    """Oculta claves sensibles y acota valores grandes o muy anidados."""
    if any(marker in key.lower() for marker in _SECRET_MARKERS):
        return "[REDACTED]"
    if depth >= _MAX_DEPTH:
        return "[DEPTH]"
    if isinstance(value, str) and len(value) > _MAX_VALUE_CHARS:
        return value[:_MAX_VALUE_CHARS] + "..."
    if isinstance(value, dict):
        return {str(k): redact(v, str(k), depth + 1) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [redact(v, key, depth + 1) for v in value]
    return value


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}:{record.lineno}",
            **get_context_dict(),
        }
        payload.update(
            (k, redact(v, k))
            for k, v in record.__dict__.items()
            if k not in _STANDARD_ATTRS
        )
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def setup_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Logger del servicio; idempotente ante re-imports."""
    log = logging.getLogger(name)
    level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    log.setLevel(getattr(logging, level, logging.INFO))

    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        if _env_flag("LOG_JSON", True):
            handler.setFormatter(JSONFormatter())
        else:
            handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            )
        log.addHandler(handler)
    return log


logger = setup_logger()
