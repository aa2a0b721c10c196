from __future__ import annotations

from pathlib import Path

import pytest

from vacancy_crawler.config import (
    FetchSettings,
    GlobalConfig,
    ScheduleConfig,
    ScheduleType,
    VacancyPattern,
    WorkerConfig,
)


def test_schedule_config_interval_requires_numeric() -> None:
    with pytest.raises(ValueError):
        ScheduleConfig(type=ScheduleType.INTERVAL)
    with pytest.raises(ValueError):
        ScheduleConfig(type=ScheduleType.INTERVAL, value="every minute")
    cfg = ScheduleConfig(type=ScheduleType.INTERVAL, value={"minutes": 2})
    assert cfg.value == {"minutes": 2}


def test_schedule_config_cron_requires_string() -> None:
    with pytest.raises(ValueError):
        ScheduleConfig(type=ScheduleType.CRON, value=5)


def test_fetch_settings_validation() -> None:
    settings = FetchSettings(delay_range=[1, 3])
    assert settings.delay_range == (1.0, 3.0)
    assert FetchSettings(delay_range=None).delay_range == (0.0, 0.0)
    with pytest.raises(ValueError):
        FetchSettings(delay_range=(-1, 2))
    with pytest.raises(ValueError):
        FetchSettings(delay_range=(3, 1))
    with pytest.raises(ValueError):
        FetchSettings(timeout=0)
    with pytest.raises(ValueError):
        FetchSettings(max_retries=-1)


def test_vacancy_pattern_requires_description() -> None:
    with pytest.raises(ValueError):
        VacancyPattern(description="  ")
    with pytest.raises(ValueError):
        VacancyPattern(description=["", " "])
    assert VacancyPattern(description=["", "div.body"]).description == ["", "div.body"]


def test_worker_config_defaults_and_validation(sample_worker_config) -> None:
    config = sample_worker_config()
    assert config.seed_urls == [config.base_url]
    assert config.recrawl is None

    explicit = sample_worker_config(seed_urls=["https://jobs.example.com/all"])
    assert explicit.seed_urls == ["https://jobs.example.com/all"]

    for overrides in (
        {"base_url": "ftp://jobs.example.com"},
        {"base_url": "jobs.example.com"},
        {"worker_id": 0},
        {"name": "  "},
        {"max_pages": 0},
    ):
        with pytest.raises(ValueError):
            sample_worker_config(**overrides)


def test_worker_config_without_fetch_leaves_it_unset() -> None:
    config = WorkerConfig(
        worker_id=2,
        name="plain",
        base_url="https://jobs.example.com",
        vacancy_pattern={"description": "div.description"},
    )
    assert "fetch" not in config.model_fields_set
    assert config.fetch == FetchSettings()


def test_global_config_store_path(tmp_path: Path) -> None:
    config = GlobalConfig(store_path="data/store/x.db")
    assert config.resolved_store_path(tmp_path) == (tmp_path / "data" / "store" / "x.db").resolve()
    absolute = GlobalConfig(store_path=tmp_path / "abs.db")
    assert absolute.resolved_store_path(Path("/elsewhere")) == tmp_path / "abs.db"
    with pytest.raises(ValueError):
        GlobalConfig(thread_pool_workers=0)
