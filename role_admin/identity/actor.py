"""
===============================================================================
TARJETA CRC — identity/actor.py (Actor autenticado)
===============================================================================

Responsabilidades:
  - Extraer el bearer token de `Authorization: Bearer <token>`.
  - Validar el JWT (HS256, PyJWT) y devolver el user_id del claim `sub`.
  - Exponer la dependencia FastAPI `require_actor`.

Reglas:
  - El token SOLO identifica al actor. Cualquier claim de rol se ignora:
    el rol se re-lee del store en cada operación.
  - Token ausente / inválido / expirado -> 401 (RFC 7807).

Colaboradores:
  - PyJWT
  - crosscutting.config (jwt_secret / jwt_algorithm)
  - crosscutting.error_responses.unauthorized
  - role_admin/context.py (actor_user_id para logs)
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final
from uuid import UUID

import jwt
from fastapi import Header

from ..context import set_actor_context
from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import unauthorized

CLAIM_SUB: Final[str] = "sub"
CLAIM_EXP: Final[str] = "exp"


@dataclass(frozen=True, slots=True)
class Actor:
    """Usuario autenticado que ejecuta la operación."""

    user_id: UUID


def extract_bearer_token(authorization: str | None) -> str | None:
    """Extrae token desde `Authorization: Bearer <token>`."""
    if not authorization:
        return None
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def decode_actor_token(
    token: str, *, secret: str | None = None, algorithm: str | None = None
) -> Actor:
    """
    Decodifica y valida el token.

    Errores:
        - 401 si expiró, la firma es inválida o `sub` no es un UUID.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            secret or settings.jwt_secret,
            algorithms=[algorithm or settings.jwt_algorithm],
            options={"require": [CLAIM_SUB, CLAIM_EXP]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise unauthorized("Token expirado.") from exc
    except jwt.InvalidTokenError as exc:
        raise unauthorized("Token inválido.") from exc

    try:
        user_id = UUID(str(payload[CLAIM_SUB]))
    except ValueError as exc:
        raise unauthorized("Token inválido.") from exc

    return Actor(user_id=user_id)


async def require_actor(
    authorization: str | None = Header(None, alias="Authorization"),
) -> Actor:
    """Dependencia FastAPI: actor autenticado o 401."""
    token = extract_bearer_token(authorization)
    if token is None:
        raise unauthorized()
    actor = decode_actor_token(token)
    set_actor_context(str(actor.user_id))
    return actor
