"""In-process record store used for dry runs and tests."""

from __future__ import annotations

from dataclasses import replace
from enum import Enum
from itertools import count
from threading import Lock
from typing import Any

from ..records import TAG_KINDS, EntityKind, Record, Vacancy
from .base import RecordStore


class MemoryRecordStore(RecordStore):
    """Dict-backed store with the same semantics as the SQLite implementation.

    Records handed out are copies, so callers cannot mutate stored state
    without going through :meth:`save`.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._ids = count(1)
        self._rows: dict[EntityKind, dict[int, Record]] = {kind: {} for kind in EntityKind}
        self._links: set[tuple[int, EntityKind, int]] = set()

    def find_by_equals(self, kind: EntityKind, field: str, value: Any) -> list[Record]:
        self.record_type(kind, field)
        if isinstance(value, Enum):
            value = value.value
        with self._lock:
            rows = sorted(self._rows[EntityKind(kind)].items())
            return [replace(record) for _, record in rows if getattr(record, field) == value]

    def save(self, record: Record) -> Record:
        with self._lock:
            if record.id is None:
                record.id = next(self._ids)
            self._rows[record.kind][record.id] = replace(record)
        return record

    def add_association(self, owner: Record, related: Record) -> None:
        self._check_association(owner, related)
        with self._lock:
            self._links.add((self.require_id(owner), related.kind, self.require_id(related)))

    def remove_association(self, owner: Record, related: Record) -> None:
        self._check_association(owner, related)
        with self._lock:
            self._links.discard((self.require_id(owner), related.kind, self.require_id(related)))

    def associations(self, owner: Record, kind: EntityKind) -> list[Record]:
        owner_id = self.require_id(owner)
        kind = EntityKind(kind)
        with self._lock:
            related_ids = sorted(
                related_id
                for linked_owner, linked_kind, related_id in self._links
                if linked_owner == owner_id and linked_kind is kind
            )
            return [replace(self._rows[kind][related_id]) for related_id in related_ids]

    def count(self, kind: EntityKind) -> int:
        with self._lock:
            return len(self._rows[EntityKind(kind)])

    @staticmethod
    def _check_association(owner: Record, related: Record) -> None:
        if not isinstance(owner, Vacancy) or related.kind not in TAG_KINDS:
            raise ValueError(
                f"Unsupported association {type(owner).__name__} -> {related.kind.value}"
            )


__all__ = ["MemoryRecordStore"]
