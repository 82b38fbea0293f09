"""
Name: Audit Emission Tests

Responsibilities:
  - Validate that audit failures never roll back a committed role change
  - Validate retry of audit writes that never reached commit
  - Validate that ambiguous write errors are not retried (no duplicate entries)
  - Validate the failure counter
"""

from uuid import uuid4

import psycopg
import pytest
from psycopg_pool import PoolTimeout

from role_admin.application.usecases.roles import AssignRoleUseCase, MutationStatus
from role_admin.audit import emit_audit_entry
from role_admin.crosscutting.exceptions import DatabaseError
from role_admin.domain.audit import AuditAction
from role_admin.domain.entities import Role

pytestmark = pytest.mark.unit

_FAILURES = "role_admin_audit_write_failures_total"


class _BrokenAuditRepository:
    def __init__(self, exc: Exception):
        self.exc = exc
        self.calls = 0

    def append(self, entry):
        self.calls += 1
        raise self.exc


class _FlakyAuditRepository:
    def __init__(self, failures: int):
        self.failures = failures
        self.calls = 0
        self.stored = []

    def append(self, entry):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionRefusedError("audit store unreachable")
        self.stored.append(entry)
        return entry


def test_audit_failure_does_not_roll_back_assignment(role_repo, owner_id, metric_value):
    broken = _BrokenAuditRepository(RuntimeError("disk full"))
    use_case = AssignRoleUseCase(role_repository=role_repo, audit_repository=broken)
    target = uuid4()
    before = metric_value(_FAILURES)

    result = use_case.execute(owner_id, target, Role.ADMIN)

    assert result.error is None
    assert result.status == MutationStatus.APPLIED
    assert role_repo.get_assignment(target).role is Role.ADMIN
    assert broken.calls == 1
    assert metric_value(_FAILURES) == before + 1


def test_uncommitted_audit_error_is_retried(metric_value):
    flaky = _FlakyAuditRepository(failures=2)
    before = metric_value(_FAILURES)

    entry = emit_audit_entry(
        flaky,
        action=AuditAction.ROLE_REMOVED,
        target_user_id=uuid4(),
        metadata={"from": Role.ADMIN},
    )

    assert entry is not None
    assert flaky.calls == 3
    assert flaky.stored[0].metadata == {"from": "admin"}
    assert metric_value(_FAILURES) == before


def test_exhausted_retries_return_none_and_count_failure(metric_value):
    flaky = _FlakyAuditRepository(failures=10)
    before = metric_value(_FAILURES)

    entry = emit_audit_entry(
        flaky, action=AuditAction.ROLE_ASSIGNED, target_user_id=uuid4()
    )

    assert entry is None
    assert flaky.calls == 3
    assert metric_value(_FAILURES) == before + 1


def test_missing_repository_is_a_no_op():
    assert (
        emit_audit_entry(None, action=AuditAction.ROLE_ASSIGNED, target_user_id=uuid4())
        is None
    )


def test_pool_timeout_wrapped_in_database_error_is_retried():
    wrapped = DatabaseError(
        "Failed to append audit entry", original_error=PoolTimeout("no connection")
    )
    broken = _BrokenAuditRepository(wrapped)

    assert (
        emit_audit_entry(broken, action=AuditAction.ROLE_ASSIGNED, target_user_id=uuid4())
        is None
    )
    assert broken.calls == 3


@pytest.mark.parametrize(
    "exc",
    [
        DatabaseError(
            "Failed to append audit entry",
            original_error=psycopg.OperationalError("server closed the connection"),
        ),
        ConnectionResetError("reset after send"),
        TimeoutError("commit timed out"),
    ],
)
def test_ambiguous_audit_error_is_not_retried(exc, metric_value):
    broken = _BrokenAuditRepository(exc)
    before = metric_value(_FAILURES)

    entry = emit_audit_entry(
        broken, action=AuditAction.ROLE_UPDATED, target_user_id=uuid4()
    )

    assert entry is None
    assert broken.calls == 1
    assert metric_value(_FAILURES) == before + 1
