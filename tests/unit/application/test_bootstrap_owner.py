"""
Name: Bootstrap Owner Tests

Responsibilities:
  - Validate first-owner seeding and idempotency
"""

from uuid import uuid4

import pytest

from role_admin.application.bootstrap_owner import ensure_bootstrap_owner
from role_admin.domain.audit import AuditQuery
from role_admin.domain.entities import Role

pytestmark = pytest.mark.unit


def test_seeds_owner_when_store_has_none(role_repo, audit_repo):
    user = uuid4()

    assert ensure_bootstrap_owner(role_repo, audit_repo, user) is True

    assert role_repo.get_assignment(user).role is Role.OWNER
    (entry,) = audit_repo.list_entries(AuditQuery(), limit=10)
    assert entry.action == "role_assigned"
    assert entry.actor_user_id is None
    assert entry.metadata["source"] == "bootstrap"


def test_is_idempotent_when_an_owner_exists(role_repo, audit_repo, owner_id):
    user = uuid4()

    assert ensure_bootstrap_owner(role_repo, audit_repo, user) is False
    assert role_repo.get_assignment(user) is None
    assert audit_repo.list_entries(AuditQuery(), limit=10) == []


def test_no_configured_user_does_nothing(role_repo, audit_repo):
    assert ensure_bootstrap_owner(role_repo, audit_repo, None) is False
    assert role_repo.count_by_role(Role.OWNER) == 0
