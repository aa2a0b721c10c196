"""SQLite connection management and schema for the vacancy store."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from threading import Lock
from typing import Dict

# Join table per tag kind, keyed by the tag table name.
ASSOCIATION_TABLES: dict[str, str] = {
    "skills": "vacancy_skills",
    "educations": "vacancy_educations",
    "locations": "vacancy_locations",
}

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS blacklist (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        worker_id INTEGER NOT NULL,
        word TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_blacklist_worker ON blacklist(worker_id)",
    """
    CREATE TABLE IF NOT EXISTS urls (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        worker_id INTEGER NOT NULL,
        url TEXT NOT NULL,
        flag TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_urls_url ON urls(url)",
    """
    CREATE TABLE IF NOT EXISTS vacancies (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        url_id INTEGER NOT NULL,
        fingerprint TEXT NOT NULL,
        version INTEGER NOT NULL,
        active INTEGER NOT NULL,
        title TEXT,
        employer TEXT,
        employment_type TEXT,
        location TEXT,
        description TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_vacancies_url ON vacancies(url_id)",
    "CREATE INDEX IF NOT EXISTS ix_vacancies_fingerprint ON vacancies(fingerprint)",
    "CREATE TABLE IF NOT EXISTS skills (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL)",
    "CREATE TABLE IF NOT EXISTS educations (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL)",
    "CREATE TABLE IF NOT EXISTS locations (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL)",
    *(
        f"""
        CREATE TABLE IF NOT EXISTS {join} (
            vacancy_id INTEGER NOT NULL,
            related_id INTEGER NOT NULL,
            PRIMARY KEY (vacancy_id, related_id)
        )
        """
        for join in ASSOCIATION_TABLES.values()
    ),
)


class SQLiteManager:
    """Manage SQLite connections with basic schema guarantees."""

    def __init__(self) -> None:
        self._connections: Dict[Path, sqlite3.Connection] = {}
        self._lock = Lock()

    def connect(self, path: Path) -> sqlite3.Connection:
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            if path not in self._connections:
                conn = sqlite3.connect(path, check_same_thread=False)
                conn.row_factory = sqlite3.Row
                self._connections[path] = conn
                self._ensure_schema(conn)
            return self._connections[path]

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        for statement in _SCHEMA:
            conn.execute(statement)
        conn.commit()

    def reset(self, path: Path) -> None:
        with self._lock:
            if path in self._connections:
                self._connections[path].close()
                del self._connections[path]
        if path.exists():
            path.unlink()

    def close(self, path: Path) -> None:
        with self._lock:
            conn = self._connections.pop(path, None)
        if conn is not None:
            conn.close()

    def close_all(self) -> None:
        with self._lock:
            for conn in self._connections.values():
                conn.close()
            self._connections.clear()


__all__ = ["ASSOCIATION_TABLES", "SQLiteManager"]
