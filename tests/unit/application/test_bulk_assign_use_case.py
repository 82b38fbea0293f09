"""
Name: Bulk Assign Use Case Tests

Responsibilities:
  - Validate batch-level prechecks (size, owners in batch, self-demotion)
  - Validate per-item isolation (one failure does not abort the batch)
  - Validate dedupe and no-op handling
"""

from uuid import uuid4

import pytest

from role_admin.application.usecases.roles import (
    AssignRoleUseCase,
    BulkAssignRoleUseCase,
    RoleErrorCode,
)
from role_admin.crosscutting.exceptions import DatabaseError
from role_admin.domain.entities import Role

pytestmark = pytest.mark.unit


def test_assigns_every_target(bulk_uc, owner_id, role_repo):
    targets = [uuid4() for _ in range(4)]

    result = bulk_uc.execute(owner_id, targets, Role.MODERATOR)

    assert result.error is None
    assert result.succeeded == targets
    assert result.failed == []
    assert all(role_repo.get_assignment(t).role is Role.MODERATOR for t in targets)


def test_duplicates_are_processed_once(bulk_uc, owner_id):
    target = uuid4()
    result = bulk_uc.execute(owner_id, [target, target, target], Role.USER)
    assert result.succeeded == [target]


def test_no_op_items_count_as_succeeded(bulk_uc, owner_id, seed):
    already = seed(Role.USER)
    fresh = uuid4()

    result = bulk_uc.execute(owner_id, [already, fresh], Role.USER)

    assert result.succeeded == [already, fresh]


def test_empty_batch_is_validation_error(bulk_uc, owner_id):
    result = bulk_uc.execute(owner_id, [], Role.USER)
    assert result.error.code == RoleErrorCode.VALIDATION_ERROR


def test_oversized_batch_is_rejected(bulk_uc, owner_id, role_repo):
    targets = [uuid4() for _ in range(11)]

    result = bulk_uc.execute(owner_id, targets, Role.USER)

    assert result.error.code == RoleErrorCode.VALIDATION_ERROR
    assert result.error.context["max_targets"] == 10
    assert all(role_repo.get_assignment(t) is None for t in targets)


def test_moderator_cannot_bulk_assign(bulk_uc, seed):
    moderator = seed(Role.MODERATOR)
    result = bulk_uc.execute(moderator, [uuid4()], Role.USER)
    assert result.error.code == RoleErrorCode.FORBIDDEN


def test_batch_demoting_every_owner_is_rejected_up_front(bulk_uc, seed, admin_id, role_repo):
    owners = [seed(Role.OWNER), seed(Role.OWNER)]
    bystander = uuid4()

    result = bulk_uc.execute(admin_id, [bystander, *owners], Role.ADMIN)

    assert result.error.code == RoleErrorCode.LAST_OWNER_PROTECTED
    assert result.error.context["owners_in_batch"] == 2
    assert role_repo.count_by_role(Role.OWNER) == 2
    assert role_repo.get_assignment(bystander) is None


def test_batch_demoting_some_owners_is_allowed(bulk_uc, seed, admin_id, role_repo):
    owners = [seed(Role.OWNER), seed(Role.OWNER)]
    seed(Role.OWNER)

    result = bulk_uc.execute(admin_id, owners, Role.USER)

    assert result.succeeded == owners
    assert role_repo.count_by_role(Role.OWNER) == 1


def test_self_demotion_in_batch_needs_confirmation(bulk_uc, owner_id, admin_id, role_repo):
    other = uuid4()

    rejected = bulk_uc.execute(admin_id, [other, admin_id], Role.USER)

    assert rejected.error.code == RoleErrorCode.SELF_DEMOTION_NEEDS_CONFIRMATION
    assert role_repo.get_assignment(other) is None

    confirmed = bulk_uc.execute(admin_id, [other, admin_id], Role.USER, confirmed=True)

    assert confirmed.error is None
    assert confirmed.succeeded == [other, admin_id]
    assert role_repo.get_assignment(admin_id).role is Role.USER


def test_self_demotion_mid_batch_does_not_revoke_authorization(
    owner_id, admin_id, role_repo, audit_repo
):
    assign = AssignRoleUseCase(role_repository=role_repo, audit_repository=audit_repo)
    bulk = BulkAssignRoleUseCase(
        role_repository=role_repo, assign_use_case=assign, max_concurrency=1
    )
    targets = [admin_id, uuid4(), uuid4()]

    result = bulk.execute(admin_id, targets, Role.USER, confirmed=True)

    assert result.succeeded == targets


class _FlakyRoleRepository:
    """Delegates to the real store, failing writes for selected users."""

    def __init__(self, inner, failing):
        self._inner = inner
        self._failing = set(failing)

    def __getattr__(self, name):
        return getattr(self._inner, name)

    def upsert_guarded(self, user_id, check, *, assigned_by=None):
        if user_id in self._failing:
            raise DatabaseError("write failed")
        return self._inner.upsert_guarded(user_id, check, assigned_by=assigned_by)


def test_item_failure_is_isolated(role_repo, audit_repo, owner_id, metric_value):
    bad = uuid4()
    good = [uuid4(), uuid4()]
    flaky = _FlakyRoleRepository(role_repo, failing=[bad])
    assign = AssignRoleUseCase(role_repository=flaky, audit_repository=audit_repo)
    bulk = BulkAssignRoleUseCase(role_repository=flaky, assign_use_case=assign)
    failed_before = metric_value(
        "role_admin_bulk_items_total", {"outcome": "failed"}
    )

    result = bulk.execute(owner_id, [good[0], bad, good[1]], Role.ADMIN)

    assert result.error is None
    assert result.succeeded == good
    assert [f.user_id for f in result.failed] == [bad]
    assert result.failed[0].reason == RoleErrorCode.STORE_FAILURE
    assert all(role_repo.get_assignment(u).role is Role.ADMIN for u in good)
    assert (
        metric_value("role_admin_bulk_items_total", {"outcome": "failed"})
        == failed_before + 1
    )

