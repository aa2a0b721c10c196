"""SQLite-backed record store."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from threading import Lock
from typing import Any, Iterator

import structlog

from ..errors import DataUnavailable
from ..infra.storage import ASSOCIATION_TABLES, SQLiteManager
from ..records import TAG_KINDS, EntityKind, Record, Vacancy
from .base import RecordStore


def _to_sql(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return int(value)
    return value


class SQLiteRecordStore(RecordStore):
    """Persist records in a single SQLite database shared by all workers."""

    def __init__(self, manager: SQLiteManager, db_path: Path) -> None:
        self.manager = manager
        self.db_path = db_path
        self._lock = Lock()
        self.logger = structlog.get_logger("vacancy_crawler.store")
        try:
            self._conn = self.manager.connect(db_path)
        except sqlite3.Error as exc:
            raise DataUnavailable(f"Cannot open record store at {db_path}: {exc}") from exc

    @contextmanager
    def _cursor(self, operation: str) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except sqlite3.Error as exc:
                try:
                    self._conn.rollback()
                except sqlite3.Error as rollback_exc:
                    self.logger.warning("store_rollback_failed", error=str(rollback_exc))
                self.logger.error("store_operation_failed", operation=operation, error=str(exc))
                raise DataUnavailable(f"{operation} failed: {exc}") from exc

    def find_by_equals(self, kind: EntityKind, field: str, value: Any) -> list[Record]:
        record_cls = self.record_type(kind, field)
        query = f"SELECT * FROM {record_cls.table} WHERE {field} = ? ORDER BY id"
        with self._cursor("find_by_equals") as conn:
            rows = conn.execute(query, (_to_sql(value),)).fetchall()
        return [self._from_row(record_cls, row) for row in rows]

    def save(self, record: Record) -> Record:
        columns = record.columns()
        values = [_to_sql(value) for value in record.values().values()]
        with self._cursor("save") as conn:
            if record.id is None:
                placeholders = ", ".join("?" for _ in columns)
                cur = conn.execute(
                    f"INSERT INTO {record.table} ({', '.join(columns)}) VALUES ({placeholders})",
                    values,
                )
                record.id = int(cur.lastrowid)
            else:
                assignments = ", ".join(f"{name} = ?" for name in columns)
                conn.execute(
                    f"UPDATE {record.table} SET {assignments} WHERE id = ?",
                    [*values, record.id],
                )
        return record

    def add_association(self, owner: Record, related: Record) -> None:
        join = self._join_table(owner, related)
        with self._cursor("add_association") as conn:
            conn.execute(
                f"INSERT OR IGNORE INTO {join} (vacancy_id, related_id) VALUES (?, ?)",
                (self.require_id(owner), self.require_id(related)),
            )

    def remove_association(self, owner: Record, related: Record) -> None:
        join = self._join_table(owner, related)
        with self._cursor("remove_association") as conn:
            conn.execute(
                f"DELETE FROM {join} WHERE vacancy_id = ? AND related_id = ?",
                (self.require_id(owner), self.require_id(related)),
            )

    def associations(self, owner: Record, kind: EntityKind) -> list[Record]:
        record_cls = self.record_type(kind)
        join = self._join_table(owner, record_cls)
        query = (
            f"SELECT t.* FROM {record_cls.table} t JOIN {join} j ON j.related_id = t.id "
            "WHERE j.vacancy_id = ? ORDER BY t.id"
        )
        with self._cursor("associations") as conn:
            rows = conn.execute(query, (self.require_id(owner),)).fetchall()
        return [self._from_row(record_cls, row) for row in rows]

    def close(self) -> None:
        with self._lock:
            self.manager.close(self.db_path)

    @staticmethod
    def _join_table(owner: Record, related: Record | type[Record]) -> str:
        if not isinstance(owner, Vacancy) or related.kind not in TAG_KINDS:
            raise ValueError(
                f"Unsupported association {type(owner).__name__} -> {related.kind.value}"
            )
        return ASSOCIATION_TABLES[related.table]

    @staticmethod
    def _from_row(record_cls: type[Record], row: sqlite3.Row) -> Record:
        data = dict(row)
        if "active" in data:
            data["active"] = bool(data["active"])
        return record_cls(**data)


__all__ = ["SQLiteRecordStore"]
