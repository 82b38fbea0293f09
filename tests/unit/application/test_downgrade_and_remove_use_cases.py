"""
Name: Downgrade / Remove Use Case Tests

Responsibilities:
  - Validate one-level downgrade, the terminal lowest role and NOT_FOUND
  - Validate removal rules (last owner, no confirmation, audit)
"""

from uuid import uuid4

import pytest

from role_admin.application.usecases.roles import MutationStatus, RoleErrorCode
from role_admin.domain.audit import AuditQuery
from role_admin.domain.entities import Role

pytestmark = pytest.mark.unit


class TestDowngrade:
    def test_walks_the_hierarchy_until_lowest(self, downgrade_uc, owner_id, seed):
        target = seed(Role.OWNER)
        seen = []
        for _ in range(3):
            result = downgrade_uc.execute(owner_id, target)
            assert result.status == MutationStatus.APPLIED
            seen.append(result.assignment.role)

        assert seen == [Role.ADMIN, Role.MODERATOR, Role.USER]

        terminal = downgrade_uc.execute(owner_id, target)
        assert terminal.error.code == RoleErrorCode.ALREADY_LOWEST
        assert terminal.error.context["role"] == "user"

    def test_unassigned_target_is_not_found(self, downgrade_uc, owner_id):
        result = downgrade_uc.execute(owner_id, uuid4())
        assert result.error.code == RoleErrorCode.NOT_FOUND

    def test_last_owner_is_protected(self, downgrade_uc, owner_id, admin_id):
        result = downgrade_uc.execute(admin_id, owner_id)
        assert result.error.code == RoleErrorCode.LAST_OWNER_PROTECTED

    def test_self_downgrade_needs_confirmation(self, downgrade_uc, owner_id, admin_id):
        pending = downgrade_uc.execute(admin_id, admin_id)
        assert pending.status == MutationStatus.PENDING_CONFIRMATION
        assert pending.pending.requested_role is Role.MODERATOR

        applied = downgrade_uc.execute(admin_id, admin_id, confirmed=True)
        assert applied.assignment.role is Role.MODERATOR

    def test_audited_as_downgrade(self, downgrade_uc, owner_id, seed, audit_repo):
        target = seed(Role.ADMIN)

        downgrade_uc.execute(owner_id, target)

        (entry,) = audit_repo.list_entries(AuditQuery(), limit=10)
        assert entry.action == "role_downgraded"
        assert entry.metadata == {"from": "admin", "to": "moderator"}


class TestRemove:
    def test_removes_assignment_and_audits(self, remove_uc, owner_id, seed, role_repo, audit_repo):
        target = seed(Role.MODERATOR)

        result = remove_uc.execute(owner_id, target)

        assert result.error is None
        assert result.removed
        assert result.removed_role is Role.MODERATOR
        assert role_repo.get_assignment(target) is None
        (entry,) = audit_repo.list_entries(AuditQuery(), limit=10)
        assert entry.action == "role_removed"
        assert entry.metadata == {"from": "moderator"}

    def test_unassigned_target_is_not_found(self, remove_uc, owner_id):
        result = remove_uc.execute(owner_id, uuid4())
        assert result.error.code == RoleErrorCode.NOT_FOUND

    def test_last_owner_cannot_remove_self(self, remove_uc, owner_id, role_repo):
        result = remove_uc.execute(owner_id, owner_id)

        assert result.error.code == RoleErrorCode.LAST_OWNER_PROTECTED
        assert role_repo.get_assignment(owner_id).role is Role.OWNER

    def test_self_removal_does_not_ask_for_confirmation(self, remove_uc, owner_id, admin_id, role_repo):
        result = remove_uc.execute(admin_id, admin_id)

        assert result.removed
        assert role_repo.get_assignment(admin_id) is None

    def test_moderator_cannot_remove(self, remove_uc, seed, owner_id):
        moderator = seed(Role.MODERATOR)
        result = remove_uc.execute(moderator, owner_id)
        assert result.error.code == RoleErrorCode.FORBIDDEN
