"""PostgreSQL Repository Implementations (SQL crudo sobre psycopg 3)."""

from .audit_entry import PostgresAuditEntryRepository
from .role_assignment import PostgresRoleAssignmentRepository

__all__ = [
    "PostgresAuditEntryRepository",
    "PostgresRoleAssignmentRepository",
]
