"""
Name: Postgres Role Assignment Repository Tests

Responsibilities:
  - Validate the transactional check-and-set flow (lock -> snapshot -> write)
  - Validate DatabaseError wrapping and transient-error retry

Notes:
  - No real DB: a fake pool/connection records executed SQL
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from uuid import uuid4

import psycopg
import pytest

from role_admin.crosscutting.exceptions import DatabaseError
from role_admin.domain.entities import Role
from role_admin.domain.role_policy import VerdictKind, assignment_check
from role_admin.infrastructure.repositories import PostgresRoleAssignmentRepository

pytestmark = pytest.mark.unit

_NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


class _Cursor:
    def __init__(self, row=None):
        self._row = row

    def fetchone(self):
        return self._row

    def fetchall(self):
        return [self._row] if self._row else []


class _FakeConnection:
    def __init__(self, current_row, owner_count, fail_with=None):
        self.current_row = current_row
        self.owner_count = owner_count
        self.fail_with = fail_with
        self.executed: list[str] = []

    @contextmanager
    def transaction(self):
        yield

    def execute(self, query, params=None):
        self.executed.append(query)
        if self.fail_with is not None:
            exc, self.fail_with = self.fail_with, None
            raise exc
        if "pg_advisory_xact_lock" in query:
            return _Cursor()
        if "FOR UPDATE" in query:
            return _Cursor(self.current_row)
        if "COUNT(*)" in query:
            return _Cursor((self.owner_count,))
        if query.strip().startswith("INSERT"):
            user_id, role, assigned_by = params
            return _Cursor((user_id, role, assigned_by, _NOW, _NOW))
        return _Cursor()


class _FakePool:
    def __init__(self, conn):
        self.conn = conn
        self.connections = 0

    @contextmanager
    def connection(self):
        self.connections += 1
        yield self.conn


def test_upsert_runs_lock_snapshot_and_write_in_one_transaction():
    user = uuid4()
    conn = _FakeConnection(current_row=None, owner_count=1)
    repo = PostgresRoleAssignmentRepository(pool=_FakePool(conn))

    outcome = repo.upsert_guarded(user, assignment_check(None, Role.ADMIN))

    assert outcome.written
    assert outcome.assignment.role is Role.ADMIN
    assert "pg_advisory_xact_lock" in conn.executed[0]
    assert "FOR UPDATE" in conn.executed[1]
    assert "COUNT(*)" in conn.executed[2]
    assert conn.executed[3].strip().startswith("INSERT")


def test_denied_verdict_skips_write():
    user = uuid4()
    row = (user, "owner", None, _NOW, _NOW)
    conn = _FakeConnection(current_row=row, owner_count=1)
    repo = PostgresRoleAssignmentRepository(pool=_FakePool(conn))

    outcome = repo.upsert_guarded(user, assignment_check(None, Role.USER))

    assert outcome.verdict.kind == VerdictKind.DENY_LAST_OWNER
    assert not outcome.written
    assert len(conn.executed) == 3


def test_transient_error_retries_whole_transaction():
    user = uuid4()
    conn = _FakeConnection(
        current_row=None,
        owner_count=0,
        fail_with=psycopg.errors.SerializationFailure("could not serialize"),
    )
    pool = _FakePool(conn)
    repo = PostgresRoleAssignmentRepository(pool=pool)

    outcome = repo.upsert_guarded(user, assignment_check(None, Role.USER))

    assert outcome.written
    assert pool.connections == 2


def test_permanent_error_is_wrapped_in_database_error():
    conn = _FakeConnection(
        current_row=None,
        owner_count=0,
        fail_with=psycopg.errors.UndefinedTable("user_roles does not exist"),
    )
    pool = _FakePool(conn)
    repo = PostgresRoleAssignmentRepository(pool=pool)

    with pytest.raises(DatabaseError) as exc_info:
        repo.upsert_guarded(uuid4(), assignment_check(None, Role.USER))

    assert isinstance(exc_info.value.original_error, psycopg.errors.UndefinedTable)
    assert pool.connections == 1


def test_ping_selects_one():
    conn = _FakeConnection(current_row=None, owner_count=0)
    repo = PostgresRoleAssignmentRepository(pool=_FakePool(conn))

    assert repo.ping() is True
    assert conn.executed == ["SELECT 1"]


def test_ping_failure_raises_database_error():
    conn = _FakeConnection(
        current_row=None,
        owner_count=0,
        fail_with=psycopg.OperationalError("server closed the connection"),
    )
    repo = PostgresRoleAssignmentRepository(pool=_FakePool(conn))

    with pytest.raises(DatabaseError):
        repo.ping()
