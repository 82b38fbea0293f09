"""
Name: Query Use Case Tests

Responsibilities:
  - Validate listing by role with cursor pagination
  - Validate role counts, audit queries and keyword search
  - Validate read authorization through the permission matrix
  - End to end: demoting one of two owners is visible in audit, counts and listing
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from role_admin.application.usecases.roles import (
    ListRoleAssignmentsUseCase,
    MutationStatus,
    QueryAuditLogUseCase,
    RoleCountsUseCase,
    RoleErrorCode,
    SearchScope,
    SearchUseCase,
)
from role_admin.domain.audit import AuditEntry, AuditQuery
from role_admin.domain.entities import Role

pytestmark = pytest.mark.unit


@pytest.fixture
def list_uc(role_repo):
    return ListRoleAssignmentsUseCase(role_repository=role_repo)


@pytest.fixture
def counts_uc(role_repo):
    return RoleCountsUseCase(role_repository=role_repo)


@pytest.fixture
def audit_uc(role_repo, audit_repo):
    return QueryAuditLogUseCase(role_repository=role_repo, audit_repository=audit_repo)


@pytest.fixture
def search_uc(role_repo, audit_repo):
    return SearchUseCase(role_repository=role_repo, audit_repository=audit_repo)


class TestListByRole:
    def test_pages_through_all_assignments(self, list_uc, owner_id, seed):
        users = {seed(Role.USER) for _ in range(5)}

        first = list_uc.execute(owner_id, Role.USER, limit=2)
        assert first.error is None
        assert len(first.page.items) == 2
        assert first.page.page_info.has_next

        collected = [a.user_id for a in first.page.items]
        cursor = first.page.page_info.next_cursor
        while cursor:
            page = list_uc.execute(owner_id, Role.USER, limit=2, cursor=cursor).page
            collected.extend(a.user_id for a in page.items)
            cursor = page.page_info.next_cursor

        assert len(collected) == 5
        assert set(collected) == users

    def test_invalid_cursor_is_validation_error(self, list_uc, owner_id):
        result = list_uc.execute(owner_id, Role.USER, cursor="garbage")
        assert result.error.code == RoleErrorCode.VALIDATION_ERROR

    def test_moderator_can_read(self, list_uc, seed):
        moderator = seed(Role.MODERATOR)
        assert list_uc.execute(moderator, Role.MODERATOR).error is None

    def test_user_cannot_read(self, list_uc, seed):
        user = seed(Role.USER)
        assert list_uc.execute(user, Role.USER).error.code == RoleErrorCode.FORBIDDEN


class TestCounts:
    def test_counts_are_zero_filled(self, counts_uc, owner_id, seed):
        seed(Role.USER)
        seed(Role.USER)

        result = counts_uc.execute(owner_id)

        assert result.counts == {
            Role.OWNER: 1,
            Role.ADMIN: 0,
            Role.MODERATOR: 0,
            Role.USER: 2,
        }
        assert result.total == 3

    def test_unassigned_actor_is_forbidden(self, counts_uc):
        assert counts_uc.execute(uuid4()).error.code == RoleErrorCode.FORBIDDEN


class TestAuditQuery:
    def test_start_after_end_is_validation_error(self, audit_uc, owner_id):
        now = datetime.now(timezone.utc)
        result = audit_uc.execute(
            owner_id, AuditQuery(start_at=now, end_at=now - timedelta(hours=1))
        )
        assert result.error.code == RoleErrorCode.VALIDATION_ERROR

    def test_naive_datetimes_are_treated_as_utc(self, audit_uc, audit_repo, owner_id):
        audit_repo.append(
            AuditEntry(
                action="role_assigned",
                entity_type="role_assignment",
                entity_id=str(uuid4()),
                timestamp=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc),
            )
        )

        result = audit_uc.execute(
            owner_id,
            AuditQuery(
                start_at=datetime(2026, 3, 1, 11, 0),
                end_at=datetime(2026, 3, 1, 13, 0),
            ),
        )

        assert result.error is None
        assert len(result.page.items) == 1

    def test_newest_first_with_pagination(self, audit_uc, audit_repo, owner_id):
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        for minute in range(3):
            audit_repo.append(
                AuditEntry(
                    action="role_updated",
                    entity_type="role_assignment",
                    entity_id=str(minute),
                    timestamp=base + timedelta(minutes=minute),
                )
            )

        first = audit_uc.execute(owner_id, AuditQuery(), limit=2)
        second = audit_uc.execute(
            owner_id, AuditQuery(), limit=2, cursor=first.page.page_info.next_cursor
        )

        assert [e.entity_id for e in first.page.items] == ["2", "1"]
        assert [e.entity_id for e in second.page.items] == ["0"]
        assert not second.page.page_info.has_next

    def test_moderator_can_read_security(self, audit_uc, seed):
        moderator = seed(Role.MODERATOR)
        assert audit_uc.execute(moderator, AuditQuery()).error is None

    def test_user_cannot_read_security(self, audit_uc, seed):
        user = seed(Role.USER)
        result = audit_uc.execute(user, AuditQuery())
        assert result.error.code == RoleErrorCode.FORBIDDEN


class TestSearch:
    def test_blank_keyword_is_validation_error(self, search_uc, owner_id):
        result = search_uc.execute(owner_id, "   ")
        assert result.error.code == RoleErrorCode.VALIDATION_ERROR

    def test_roles_scope_matches_name_and_description(self, search_uc, owner_id):
        by_name = search_uc.execute(owner_id, "MODER", scope=SearchScope.ROLES)
        by_description = search_uc.execute(
            owner_id, "full platform", scope=SearchScope.ROLES
        )

        assert [d.role for d in by_name.roles] == [Role.MODERATOR]
        assert [d.role for d in by_description.roles] == [Role.OWNER]
        assert by_name.audit_entries == []

    def test_all_scope_searches_audit_log(self, search_uc, assign_uc, owner_id):
        target = uuid4()
        assign_uc.execute(owner_id, target, Role.ADMIN)

        result = search_uc.execute(owner_id, "role_assigned")

        assert [e.entity_id for e in result.audit_entries] == [str(target)]
        assert result.roles == []

    def test_user_cannot_search(self, search_uc, seed):
        user = seed(Role.USER)
        result = search_uc.execute(user, "admin", scope=SearchScope.ROLES)
        assert result.error.code == RoleErrorCode.FORBIDDEN


class TestOwnerDemotesOtherOwner:
    def test_change_is_audited_counted_and_listed(
        self, assign_uc, list_uc, audit_repo, role_repo, seed
    ):
        first = seed(Role.OWNER)
        second = seed(Role.OWNER)

        result = assign_uc.execute(first, second, Role.ADMIN)

        assert result.error is None
        assert result.status == MutationStatus.APPLIED

        entries = audit_repo.list_entries(AuditQuery(), limit=10)
        assert len(entries) == 1
        assert entries[0].action == "role_updated"
        assert entries[0].metadata == {"from": "owner", "to": "admin"}
        assert entries[0].actor_user_id == first
        assert entries[0].entity_id == str(second)

        assert role_repo.count_by_role(Role.OWNER) == 1

        owners = list_uc.execute(first, Role.OWNER, limit=50)
        assert owners.error is None
        assert [a.user_id for a in owners.page.items] == [first]
