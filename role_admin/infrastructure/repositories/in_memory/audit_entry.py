"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/audit_entry.py
============================================================
Class: InMemoryAuditEntryRepository

Responsibilities:
  - Log de auditoría append-only en memoria (tests / local dev).
  - Asignar id monótono y timestamp al persistir.
  - Filtrar/ordenar igual que la versión Postgres
    (timestamp DESC, id ASC).

Collaborators:
  - domain.repositories.AuditEntryRepository (contrato)
  - domain.audit.AuditEntry / AuditQuery
============================================================
"""

from __future__ import annotations

import itertools
from dataclasses import replace
from datetime import datetime, timezone
from threading import Lock
from typing import List

from ....domain.audit import AuditEntry, AuditQuery
from ....domain.repositories import AuditEntryRepository


def _matches(entry: AuditEntry, query: AuditQuery) -> bool:
    if query.entity_type and entry.entity_type != query.entity_type:
        return False
    if query.actor_user_id and entry.actor_user_id != query.actor_user_id:
        return False
    if query.action and entry.action != query.action:
        return False
    if query.start_at and entry.timestamp and entry.timestamp < query.start_at:
        return False
    if query.end_at and entry.timestamp and entry.timestamp > query.end_at:
        return False
    return True


def _ordered(entries: List[AuditEntry]) -> List[AuditEntry]:
    """timestamp DESC, id ASC (dos sorts estables)."""
    ordered = sorted(entries, key=lambda e: e.id or 0)
    ordered.sort(
        key=lambda e: e.timestamp or datetime.min.replace(tzinfo=timezone.utc),
        reverse=True,
    )
    return ordered


class InMemoryAuditEntryRepository(AuditEntryRepository):
    def __init__(self) -> None:
        self._lock = Lock()
        self._entries: List[AuditEntry] = []
        self._ids = itertools.count(1)

    def append(self, entry: AuditEntry) -> AuditEntry:
        with self._lock:
            stored = replace(
                entry,
                id=next(self._ids),
                timestamp=entry.timestamp or datetime.now(timezone.utc),
                metadata=dict(entry.metadata),
            )
            self._entries.append(stored)
            return stored

    def list_entries(
        self,
        query: AuditQuery,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> List[AuditEntry]:
        if limit <= 0:
            return []
        offset = max(0, offset)
        with self._lock:
            matched = [e for e in self._entries if _matches(e, query)]
        return _ordered(matched)[offset : offset + limit]

    def search_entries(self, keyword: str, *, limit: int = 50) -> List[AuditEntry]:
        needle = (keyword or "").strip().lower()
        if not needle or limit <= 0:
            return []
        with self._lock:
            matched = [
                e
                for e in self._entries
                if needle in e.action.lower()
                or needle in e.entity_type.lower()
                or needle in e.entity_id.lower()
            ]
        return _ordered(matched)[:limit]
