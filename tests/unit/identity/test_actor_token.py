"""
Name: Actor Token Tests

Responsibilities:
  - Validate bearer extraction
  - Validate JWT decoding rules (expiry, signature, sub claim)
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
import pytest

from role_admin.crosscutting.config import get_settings
from role_admin.crosscutting.error_responses import AppHTTPException, ErrorCode
from role_admin.identity import decode_actor_token, extract_bearer_token

pytestmark = pytest.mark.unit


def _token(claims: dict, secret: str | None = None) -> str:
    return jwt.encode(claims, secret or get_settings().jwt_secret, algorithm="HS256")


def _in(minutes: int) -> datetime:
    return datetime.now(timezone.utc) + timedelta(minutes=minutes)


@pytest.mark.parametrize(
    "header, expected",
    [
        ("Bearer abc", "abc"),
        ("bearer  abc ", "abc"),
        ("Basic abc", None),
        ("Bearer", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_bearer_token(header, expected):
    assert extract_bearer_token(header) == expected


def test_valid_token_yields_actor():
    user = uuid4()

    actor = decode_actor_token(_token({"sub": str(user), "exp": _in(5)}))

    assert actor.user_id == user


@pytest.mark.parametrize(
    "claims, secret, detail",
    [
        ({"sub": str(uuid4()), "exp": _in(-5)}, None, "Token expirado."),
        ({"sub": str(uuid4()), "exp": _in(5)}, "another-secret-another-secret-123", "Token inválido."),
        ({"sub": "not-a-uuid", "exp": _in(5)}, None, "Token inválido."),
        ({"sub": str(uuid4())}, None, "Token inválido."),
    ],
    ids=["expired", "bad-signature", "non-uuid-sub", "missing-exp"],
)
def test_rejected_tokens_raise_401(claims, secret, detail):
    with pytest.raises(AppHTTPException) as exc_info:
        decode_actor_token(_token(claims, secret))

    assert exc_info.value.status_code == 401
    assert exc_info.value.code == ErrorCode.UNAUTHORIZED
    assert exc_info.value.detail == detail
    assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}
