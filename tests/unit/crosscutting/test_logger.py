"""
Name: Structured Logger Tests

Responsibilities:
  - Validate secret redaction and JSON payload enrichment
"""

import json
import logging

import pytest

from role_admin.context import clear_context, set_request_context
from role_admin.crosscutting.logger import JSONFormatter, redact

pytestmark = pytest.mark.unit


def test_redact_hides_sensitive_keys_recursively():
    payload = {"user": "u1", "nested": {"jwt_secret": "s3cr3t", "Authorization": "Bearer x"}}

    assert redact(payload) == {
        "user": "u1",
        "nested": {"jwt_secret": "[REDACTED]", "Authorization": "[REDACTED]"},
    }


def test_redact_truncates_long_strings():
    assert redact("a" * 5000).endswith("...")
    assert len(redact("a" * 5000)) < 5000


def test_json_formatter_includes_context_and_extras():
    set_request_context(request_id="req-1", method="PUT", path="/v1/roles")
    try:
        record = logging.LogRecord(
            "role-admin", logging.INFO, __file__, 10, "hola %s", ("mundo",), None
        )
        record.target_user_id = "abc"
        record.token = "should-not-leak"

        line = json.loads(JSONFormatter().format(record))
    finally:
        clear_context()

    assert line["msg"] == "hola mundo"
    assert line["request_id"] == "req-1"
    assert line["target_user_id"] == "abc"
    assert line["token"] == "[REDACTED]"
