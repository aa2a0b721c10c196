"""Record store contract the crawl core depends on."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..records import EntityKind, RECORD_TYPES, Record


class RecordStore(ABC):
    """Generic persistent-record abstraction.

    Implementations raise :class:`~vacancy_crawler.errors.DataUnavailable`
    when the backing storage cannot be reached.
    """

    @abstractmethod
    def find_by_equals(self, kind: EntityKind, field: str, value: Any) -> list[Record]:
        """Return records of ``kind`` whose ``field`` equals ``value``, oldest first."""

    @abstractmethod
    def save(self, record: Record) -> Record:
        """Insert or update ``record``; assigns ``record.id`` on first save."""

    @abstractmethod
    def add_association(self, owner: Record, related: Record) -> None:
        """Link ``related`` to ``owner`` (many-to-many)."""

    @abstractmethod
    def remove_association(self, owner: Record, related: Record) -> None:
        """Unlink ``related`` from ``owner``; unknown links are ignored."""

    @abstractmethod
    def associations(self, owner: Record, kind: EntityKind) -> list[Record]:
        """Return records of ``kind`` linked to ``owner``."""

    def close(self) -> None:
        """Release underlying resources."""

    @staticmethod
    def record_type(kind: EntityKind, field: str | None = None) -> type[Record]:
        record_cls = RECORD_TYPES[EntityKind(kind)]
        if field is not None and not record_cls.has_field(field):
            raise ValueError(f"Unknown field {field!r} for {record_cls.__name__}")
        return record_cls

    @staticmethod
    def require_id(record: Record) -> int:
        if record.id is None:
            raise ValueError(f"{type(record).__name__} must be saved before it can be linked")
        return record.id


__all__ = ["RecordStore"]
