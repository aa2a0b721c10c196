from __future__ import annotations

from vacancy_crawler.infra import ASSOCIATION_TABLES, SQLiteManager


def test_sqlite_manager_initialises_schema(tmp_path) -> None:
    manager = SQLiteManager()
    conn = manager.connect(tmp_path / "nested" / "store.db")
    tables = {row["name"] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
    assert {"blacklist", "urls", "vacancies", "skills", "educations", "locations"} <= tables
    assert set(ASSOCIATION_TABLES.values()) <= tables
    columns = [row["name"] for row in conn.execute("PRAGMA table_info(vacancies)")]
    assert {"url_id", "fingerprint", "version", "active", "description"} <= set(columns)
    manager.close_all()


def test_sqlite_manager_caches_connections(tmp_path) -> None:
    manager = SQLiteManager()
    path = tmp_path / "store.db"
    assert manager.connect(path) is manager.connect(path)
    manager.close(path)
    manager.close(path)


def test_sqlite_manager_reset(tmp_path) -> None:
    manager = SQLiteManager()
    path = tmp_path / "store.db"
    conn = manager.connect(path)
    conn.execute("INSERT INTO blacklist(worker_id, word) VALUES (1, 'intern')")
    conn.commit()
    manager.reset(path)
    assert not path.exists()
    conn = manager.connect(path)
    assert conn.execute("SELECT count(*) FROM blacklist").fetchone()[0] == 0
    manager.close_all()
