"""
Name: Assign Role Use Case Tests

Responsibilities:
  - Validate authorization (owner/admin only, role re-read from the store)
  - Validate guard precedence and the two-phase self-demotion flow
  - Validate audit emission on applied changes only
"""

from uuid import uuid4

import pytest

from role_admin.application.usecases.roles import MutationStatus, RoleErrorCode
from role_admin.domain.audit import AuditQuery
from role_admin.domain.entities import Role

pytestmark = pytest.mark.unit


def test_owner_assigns_role_to_unassigned_user(assign_uc, audit_repo, owner_id):
    target = uuid4()

    result = assign_uc.execute(owner_id, target, Role.MODERATOR)

    assert result.error is None
    assert result.status == MutationStatus.APPLIED
    assert result.changed
    assert result.assignment.role is Role.MODERATOR
    assert result.assignment.assigned_by == owner_id
    assert result.previous_role is None

    (entry,) = audit_repo.list_entries(AuditQuery(), limit=10)
    assert entry.action == "role_assigned"
    assert entry.entity_id == str(target)
    assert entry.actor_user_id == owner_id
    assert entry.metadata == {"from": None, "to": "moderator"}


def test_reassignment_is_audited_as_update(assign_uc, audit_repo, owner_id, seed):
    target = seed(Role.USER)

    result = assign_uc.execute(owner_id, target, Role.ADMIN)

    assert result.previous_role is Role.USER
    (entry,) = audit_repo.list_entries(AuditQuery(), limit=10)
    assert entry.action == "role_updated"
    assert entry.metadata == {"from": "user", "to": "admin"}


def test_same_role_is_unchanged_and_not_audited(assign_uc, audit_repo, owner_id, seed):
    target = seed(Role.ADMIN)

    result = assign_uc.execute(owner_id, target, Role.ADMIN)

    assert result.error is None
    assert result.status == MutationStatus.UNCHANGED
    assert not result.changed
    assert audit_repo.list_entries(AuditQuery(), limit=10) == []


@pytest.mark.parametrize("actor_role", [Role.MODERATOR, Role.USER])
def test_non_managers_are_forbidden(assign_uc, role_repo, seed, actor_role):
    actor = seed(actor_role)
    target = seed(Role.USER)

    result = assign_uc.execute(actor, target, Role.ADMIN)

    assert result.error.code == RoleErrorCode.FORBIDDEN
    assert role_repo.get_assignment(target).role is Role.USER


def test_unassigned_actor_is_forbidden(assign_uc):
    result = assign_uc.execute(uuid4(), uuid4(), Role.USER)
    assert result.error.code == RoleErrorCode.FORBIDDEN


def test_admin_can_promote_to_owner(assign_uc, admin_id, owner_id, role_repo):
    result = assign_uc.execute(admin_id, admin_id, Role.OWNER)

    assert result.status == MutationStatus.APPLIED
    assert role_repo.count_by_role(Role.OWNER) == 2


def test_last_owner_cannot_be_demoted_by_admin(assign_uc, owner_id, admin_id, role_repo):
    result = assign_uc.execute(admin_id, owner_id, Role.USER)

    assert result.error.code == RoleErrorCode.LAST_OWNER_PROTECTED
    assert result.error.context["user_id"] == str(owner_id)
    assert role_repo.get_assignment(owner_id).role is Role.OWNER


def test_last_owner_self_demotion_denied_even_when_confirmed(
    assign_uc, owner_id, role_repo, audit_repo
):
    result = assign_uc.execute(owner_id, owner_id, Role.ADMIN, confirmed=True)

    assert result.error.code == RoleErrorCode.LAST_OWNER_PROTECTED
    assert role_repo.get_assignment(owner_id).role is Role.OWNER
    assert audit_repo.list_entries(AuditQuery(), limit=10) == []


def test_self_demotion_is_two_phase(assign_uc, owner_id, admin_id, role_repo):
    pending = assign_uc.execute(admin_id, admin_id, Role.USER)

    assert pending.error is None
    assert pending.status == MutationStatus.PENDING_CONFIRMATION
    assert pending.pending.current_role is Role.ADMIN
    assert pending.pending.requested_role is Role.USER
    assert role_repo.get_assignment(admin_id).role is Role.ADMIN

    confirmed = assign_uc.execute(admin_id, admin_id, Role.USER, confirmed=True)

    assert confirmed.status == MutationStatus.APPLIED
    assert role_repo.get_assignment(admin_id).role is Role.USER


def test_two_owners_only_one_can_step_down(assign_uc, seed, role_repo):
    first = seed(Role.OWNER)
    second = seed(Role.OWNER)

    stepped_down = assign_uc.execute(first, first, Role.ADMIN, confirmed=True)
    assert stepped_down.status == MutationStatus.APPLIED

    blocked = assign_uc.execute(second, second, Role.ADMIN, confirmed=True)
    assert blocked.error.code == RoleErrorCode.LAST_OWNER_PROTECTED
    assert role_repo.count_by_role(Role.OWNER) == 1


def test_demoted_owner_loses_management_rights(assign_uc, seed):
    first = seed(Role.OWNER)
    seed(Role.OWNER)
    assign_uc.execute(first, first, Role.MODERATOR, confirmed=True)

    result = assign_uc.execute(first, uuid4(), Role.USER)

    assert result.error.code == RoleErrorCode.FORBIDDEN
