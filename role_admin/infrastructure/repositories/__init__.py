"""
============================================================
TARJETA CRC
============================================================
Class: role_admin.infrastructure.repositories (Package exports)

Responsibilities:
- Exponer implementaciones concretas de repositorios (Postgres e InMemory)
  en un único punto de importación.

Collaborators:
- Repositorios Postgres (SQL crudo + transacciones)
- Repositorios InMemory (testing / local dev)
============================================================
"""

from .in_memory import InMemoryAuditEntryRepository, InMemoryRoleAssignmentRepository
from .postgres import PostgresAuditEntryRepository, PostgresRoleAssignmentRepository

__all__ = [
    # Postgres
    "PostgresRoleAssignmentRepository",
    "PostgresAuditEntryRepository",
    # In-memory
    "InMemoryRoleAssignmentRepository",
    "InMemoryAuditEntryRepository",
]
