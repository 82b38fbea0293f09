"""
In-Memory Repository Implementations.

For testing and local development. NOT FOR PRODUCTION.
Data is lost on process restart.
"""

from .audit_entry import InMemoryAuditEntryRepository
from .role_assignment import InMemoryRoleAssignmentRepository

__all__ = [
    "InMemoryAuditEntryRepository",
    "InMemoryRoleAssignmentRepository",
]
