"""
===============================================================================
TARJETA CRC — crosscutting/pagination.py (Cursores opacos)
===============================================================================

Responsabilidades:
  - Cursor opaco = base64url("offset:<n>"); el cliente no lo interpreta.
  - Page[T] + PageInfo para listados de asignaciones y auditoría.

Notas:
  - Los repositorios se consultan con limit+1: el item sobrante indica
    has_next sin un COUNT(*).
  - Cursor ilegible -> InvalidCursorError (error del cliente, nunca offset 0).
===============================================================================
"""

from __future__ import annotations

import base64
import binascii
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

MAX_PAGE_SIZE = 200
_CURSOR_PREFIX = "offset:"


class InvalidCursorError(ValueError):
    """El cursor no salió de encode_cursor()."""


class PageInfo(BaseModel):
    has_next: bool
    has_prev: bool = False
    next_cursor: Optional[str] = None
    prev_cursor: Optional[str] = None


class Page(BaseModel, Generic[T]):
    items: List[T]
    page_info: PageInfo


def encode_cursor(offset: int) -> str:
    token = f"{_CURSOR_PREFIX}{max(0, int(offset))}"
    return base64.urlsafe_b64encode(token.encode("ascii")).decode("ascii")


def decode_cursor(cursor: str) -> int:
    try:
        token = base64.urlsafe_b64decode(cursor.encode("ascii")).decode("ascii")
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise InvalidCursorError(f"cursor inválido: {cursor!r}") from exc

    digits = token[len(_CURSOR_PREFIX) :]
    if not token.startswith(_CURSOR_PREFIX) or not digits.isdigit():
        raise InvalidCursorError(f"cursor inválido: {cursor!r}")
    return int(digits)


def clamp_limit(limit: int) -> int:
    return min(max(int(limit), 1), MAX_PAGE_SIZE)


def paginate(items: List[T], limit: int, cursor: Optional[str] = None) -> Page[T]:
    """Arma la página a partir de hasta limit+1 items leídos desde el cursor."""
    limit = clamp_limit(limit)
    offset = decode_cursor(cursor) if cursor else 0
    has_next = len(items) > limit

    return Page(
        items=items[:limit],
        page_info=PageInfo(
            has_next=has_next,
            has_prev=offset > 0,
            next_cursor=encode_cursor(offset + limit) if has_next else None,
            prev_cursor=encode_cursor(offset - limit) if offset > 0 else None,
        ),
    )
