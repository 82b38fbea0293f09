"""Identidad: el actor autenticado (solo identidad, nunca rol)."""

from .actor import Actor, decode_actor_token, extract_bearer_token, require_actor

__all__ = ["Actor", "decode_actor_token", "extract_bearer_token", "require_actor"]
