"""Shared fixtures: configs, record stores and a scripted page fetcher."""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Iterable, Mapping, Sequence

import pytest

from vacancy_crawler.config import (
    ConfigLocator,
    ConfigRepository,
    FetchSettings,
    GlobalConfig,
    VacancyPattern,
    WorkerConfig,
)
from vacancy_crawler.engine.fetcher import FetchOutcome
from vacancy_crawler.fleet import Flag, FleetSubscriber, FleetTracker
from vacancy_crawler.infra import SQLiteManager
from vacancy_crawler.store import MemoryRecordStore, SQLiteRecordStore

BASE_URL = "https://jobs.example.com"


class ScriptedFetcher:
    """Stand-in for ``PageFetcher`` replaying canned outcomes per URL.

    A URL maps to one outcome or a sequence consumed one call at a time (the
    last entry repeats). Unknown URLs come back DEAD.
    """

    def __init__(self, script: Mapping[str, FetchOutcome | Sequence[FetchOutcome]]) -> None:
        self._script = {
            url: list(outcomes) if isinstance(outcomes, (list, tuple)) else [outcomes]
            for url, outcomes in script.items()
        }
        self.calls: list[str] = []
        self.closed = False

    def fetch(self, url: str) -> FetchOutcome:
        self.calls.append(url)
        outcomes = self._script.get(url)
        if not outcomes:
            return FetchOutcome(url=url, flag=Flag.DEAD, status_code=404)
        return outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]

    def close(self) -> None:
        self.closed = True


class RecordingSubscriber(FleetSubscriber):
    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []

    def on_state_changed(self, worker_id, state) -> None:
        self.events.append(("state", (worker_id, state)))

    def on_flag_count_changed(self, flag, total) -> None:
        self.events.append(("flag", (flag, total)))

    def on_state_counts_changed(self, counts) -> None:
        self.events.append(("counts", counts))

    def on_worker_removed(self, worker_id) -> None:
        self.events.append(("removed", worker_id))

    def of(self, kind: str) -> list[Any]:
        return [payload for event, payload in self.events if event == kind]


def page(url: str, html: str) -> FetchOutcome:
    return FetchOutcome(url=url, flag=Flag.VISITED, status_code=200, text=html, content_type="text/html")


def vacancy_html(description: str, title: str = "Engineer", skills: Iterable[str] = ("Python",)) -> str:
    items = "".join(f"<li>{skill}</li>" for skill in skills)
    return (
        f"<html><body><h1>{title}</h1><span class='employer'>Acme</span>"
        f"<div class='description'>{description}</div>"
        f"<ul class='skills'>{items}</ul><a href='{BASE_URL}'>home</a></body></html>"
    )


@pytest.fixture(autouse=True)
def crawler_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("VACANCY_CRAWLER_HOME", str(tmp_path))
    return tmp_path


@pytest.fixture
def sample_global_config(tmp_path: Path) -> GlobalConfig:
    return GlobalConfig(
        thread_pool_workers=2,
        store_path=tmp_path / "store" / "vacancies.db",
        show_status_board=False,
        default_fetch=FetchSettings(timeout=5, delay_range=(0, 0), max_retries=1),
    )


@pytest.fixture
def sample_worker_config() -> Callable[..., WorkerConfig]:
    def _builder(**overrides: Any) -> WorkerConfig:
        base: dict[str, Any] = {
            "worker_id": 1,
            "name": "example-jobs",
            "base_url": BASE_URL,
            "max_pages": 50,
            "vacancy_pattern": VacancyPattern(
                title="h1",
                employer="span.employer",
                description="div.description",
                skills="ul.skills li",
            ),
            "fetch": FetchSettings(delay_range=(0, 0), max_retries=1),
        }
        base.update(overrides)
        return WorkerConfig(**base)

    return _builder


@pytest.fixture
def temp_config_repository(tmp_path: Path) -> ConfigRepository:
    locator = ConfigLocator(project_root=tmp_path)
    return ConfigRepository(locator)


@pytest.fixture
def memory_store() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture
def sqlite_store(tmp_path: Path) -> Iterable[SQLiteRecordStore]:
    store = SQLiteRecordStore(SQLiteManager(), tmp_path / "store.db")
    yield store
    store.close()


@pytest.fixture(params=["memory", "sqlite"])
def record_store(request: pytest.FixtureRequest, tmp_path: Path):
    if request.param == "memory":
        yield MemoryRecordStore()
        return
    store = SQLiteRecordStore(SQLiteManager(), tmp_path / "param-store.db")
    yield store
    store.close()


@pytest.fixture
def tracker() -> FleetTracker:
    return FleetTracker()


@pytest.fixture
def recorder(tracker: FleetTracker) -> RecordingSubscriber:
    subscriber = RecordingSubscriber()
    tracker.subscribe(subscriber)
    return subscriber


@pytest.fixture
def scripted_fetcher() -> type[ScriptedFetcher]:
    return ScriptedFetcher


@pytest.fixture
def pages() -> SimpleNamespace:
    """Builders for canned fetch outcomes."""

    return SimpleNamespace(page=page, vacancy=vacancy_html, base_url=BASE_URL)
