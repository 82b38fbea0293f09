"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Configure test environment (APP_ENV=test, zero retry backoff)
  - Provide in-memory repositories and use case factories
  - Provide user id fixtures for common role layouts

Collaborators:
  - pytest: Test framework
  - role_admin.infrastructure.repositories.in_memory: fakes for the store

Notes:
  - Env vars MUST be set before importing role_admin (Settings is cached)
  - Use @pytest.fixture(scope="function") for per-test isolation
"""

import os

os.environ["APP_ENV"] = "test"
os.environ.setdefault("RETRY_BASE_DELAY_SECONDS", "0")
os.environ.setdefault("RETRY_MAX_DELAY_SECONDS", "0")
os.environ.setdefault("RETRY_MAX_ATTEMPTS", "3")
os.environ.setdefault("JWT_SECRET", "role-admin-unit-test-secret-0123456789")
os.environ.setdefault("LOG_JSON", "false")

from uuid import UUID, uuid4  # noqa: E402

import pytest  # noqa: E402
from prometheus_client.parser import text_string_to_metric_families  # noqa: E402

from role_admin.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None
app_config.get_settings.cache_clear()

from role_admin.application.usecases.roles import (  # noqa: E402
    AssignRoleUseCase,
    BulkAssignRoleUseCase,
    DowngradeRoleUseCase,
    RemoveRoleUseCase,
)
from role_admin.crosscutting.metrics import get_metrics_response  # noqa: E402
from role_admin.domain.entities import Role  # noqa: E402
from role_admin.domain.role_policy import RoleChangeVerdict, VerdictKind  # noqa: E402
from role_admin.infrastructure.repositories import (  # noqa: E402
    InMemoryAuditEntryRepository,
    InMemoryRoleAssignmentRepository,
)


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )


# ============================================================================
# Repositories
# ============================================================================


@pytest.fixture
def role_repo() -> InMemoryRoleAssignmentRepository:
    return InMemoryRoleAssignmentRepository()


@pytest.fixture
def audit_repo() -> InMemoryAuditEntryRepository:
    return InMemoryAuditEntryRepository()


@pytest.fixture
def seed(role_repo):
    """Asigna roles directamente en el store (sin guard ni auditoría)."""

    def _seed(role: Role, user_id: UUID | None = None) -> UUID:
        user_id = user_id or uuid4()
        role_repo.upsert_guarded(
            user_id, lambda _snapshot: RoleChangeVerdict(VerdictKind.UPSERT, role)
        )
        return user_id

    return _seed


@pytest.fixture
def owner_id(seed) -> UUID:
    return seed(Role.OWNER)


@pytest.fixture
def admin_id(seed) -> UUID:
    return seed(Role.ADMIN)


# ============================================================================
# Use cases
# ============================================================================


@pytest.fixture
def assign_uc(role_repo, audit_repo) -> AssignRoleUseCase:
    return AssignRoleUseCase(role_repository=role_repo, audit_repository=audit_repo)


@pytest.fixture
def downgrade_uc(role_repo, audit_repo) -> DowngradeRoleUseCase:
    return DowngradeRoleUseCase(role_repository=role_repo, audit_repository=audit_repo)


@pytest.fixture
def remove_uc(role_repo, audit_repo) -> RemoveRoleUseCase:
    return RemoveRoleUseCase(role_repository=role_repo, audit_repository=audit_repo)


@pytest.fixture
def bulk_uc(role_repo, assign_uc) -> BulkAssignRoleUseCase:
    return BulkAssignRoleUseCase(
        role_repository=role_repo,
        assign_use_case=assign_uc,
        max_targets=10,
        max_concurrency=4,
    )


# ============================================================================
# Metrics
# ============================================================================


def _read_metric(name: str, labels: dict[str, str] | None = None) -> float:
    """Valor expuesto en /metrics para `name` con exactamente esos labels."""
    body, _ = get_metrics_response()
    for family in text_string_to_metric_families(body.decode("utf-8")):
        for sample in family.samples:
            if sample.name == name and sample.labels == (labels or {}):
                return sample.value
    return 0.0


@pytest.fixture
def metric_value():
    return _read_metric
