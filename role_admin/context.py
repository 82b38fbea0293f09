"""
===============================================================================
TARJETA CRC — role_admin/context.py (Contexto por request)
===============================================================================

Responsabilidades:
  - Guardar request_id / actor / método / path en ContextVars.
  - Exponer el contexto vigente para enriquecer los logs.

Colaboradores:
  - crosscutting.middleware: abre y cierra el contexto de cada request.
  - identity.actor: agrega el actor una vez validado el token.
  - crosscutting.logger: lee get_context_dict().

Restricciones:
  - Valores str; "" significa ausente y no se loguea.
  - Los hilos del bulk reciben una copia (contextvars.copy_context()).
===============================================================================
"""

from __future__ import annotations

from contextvars import ContextVar

# clave de log -> variable
_FIELDS: dict[str, ContextVar[str]] = {
    "request_id": ContextVar("request_id", default=""),
    "actor_user_id": ContextVar("actor_user_id", default=""),
    "method": ContextVar("http_method", default=""),
    "path": ContextVar("http_path", default=""),
}


def set_request_context(
    *, request_id: str = "", method: str = "", path: str = ""
) -> None:
    _FIELDS["request_id"].set(request_id or "")
    _FIELDS["method"].set(method or "")
    _FIELDS["path"].set(path or "")


def set_actor_context(actor_user_id: str = "") -> None:
    _FIELDS["actor_user_id"].set(actor_user_id or "")


def get_context_dict() -> dict[str, str]:
    """Contexto actual, sin las claves vacías."""
    return {key: var.get() for key, var in _FIELDS.items() if var.get()}


def clear_context() -> None:
    for var in _FIELDS.values():
        var.set("")
