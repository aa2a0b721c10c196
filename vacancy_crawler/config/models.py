"""Pydantic models used across the vacancy-crawler configuration flow."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator, model_validator


class ScheduleType(str, Enum):
    """Scheduler modes for periodic recrawls."""

    CRON = "cron"
    INTERVAL = "interval"
    ONCE = "once"


class ScheduleConfig(BaseModel):
    """Configuration describing when a worker should be recrawled."""

    type: ScheduleType = Field(default=ScheduleType.ONCE)
    value: Any = Field(
        default=None,
        description="Cron expression, interval seconds or ISO datetime, depending on type.",
    )

    @model_validator(mode="after")
    def _validate_value(self) -> "ScheduleConfig":
        if self.type is ScheduleType.CRON and not isinstance(self.value, str):
            raise ValueError("Cron schedule requires string expression")
        if self.type is ScheduleType.INTERVAL and not isinstance(self.value, (int, float, dict)):
            raise ValueError("Interval schedule requires seconds (int/float) or kwargs dict")
        if (
            self.type is ScheduleType.ONCE
            and self.value is not None
            and not isinstance(self.value, str)
        ):
            raise ValueError("Once schedule expects ISO datetime string or null")
        return self


class FetchSettings(BaseModel):
    """HTTP behaviour of a single worker."""

    timeout: float = 15.0
    user_agent: str | None = None
    delay_range: tuple[float, float] = (0.0, 0.0)
    max_retries: int = 2

    @field_validator("delay_range", mode="before")
    @classmethod
    def _coerce_delay(cls, value: Any) -> tuple[float, float]:
        if value in (None, ""):
            return (0.0, 0.0)
        if isinstance(value, (list, tuple)) and len(value) == 2:
            low, high = float(value[0]), float(value[1])
            if low < 0 or high < 0:
                raise ValueError("Delay range values must be non-negative")
            if high < low:
                raise ValueError("Delay range upper bound must be >= lower bound")
            return (low, high)
        raise ValueError("Delay range expects a two-item list or tuple")

    @model_validator(mode="after")
    def _validate_limits(self) -> "FetchSettings":
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        return self


class VacancyPattern(BaseModel):
    """CSS selectors locating vacancy fields on a detail page.

    Each field takes a single selector or a list of fallbacks; the first
    selector yielding text wins. Tag fields (``skills``, ``educations``,
    ``locations``) collect the text of every matching node.
    """

    description: str | list[str]
    title: str | list[str] | None = None
    employer: str | list[str] | None = None
    employment_type: str | list[str] | None = None
    location: str | list[str] | None = None
    skills: str | list[str] | None = None
    educations: str | list[str] | None = None
    locations: str | list[str] | None = None

    @field_validator("description")
    @classmethod
    def _require_description(cls, value: str | list[str]) -> str | list[str]:
        selectors = value if isinstance(value, list) else [value]
        if not any(selector.strip() for selector in selectors):
            raise ValueError("description selector cannot be empty")
        return value


class WorkerConfig(BaseModel):
    """Full definition of one crawl worker."""

    worker_id: int
    name: str
    base_url: str
    seed_urls: list[str] = Field(default_factory=list)
    max_pages: int = 500
    vacancy_pattern: VacancyPattern
    fetch: FetchSettings = Field(default_factory=FetchSettings)
    recrawl: ScheduleConfig | None = None

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"base_url must be an absolute http(s) URL: {value!r}")
        return value

    @model_validator(mode="after")
    def _validate_worker(self) -> "WorkerConfig":
        if self.worker_id < 1:
            raise ValueError("worker_id must be >= 1")
        if not self.name.strip():
            raise ValueError("name cannot be empty")
        if self.max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        if not self.seed_urls:
            self.seed_urls = [self.base_url]
        return self


class GlobalConfig(BaseModel):
    """Global controls shared across workers."""

    thread_pool_workers: int = 8
    store_path: Path = Field(default=Path("data/store/vacancies.db"))
    show_status_board: bool = True
    default_fetch: FetchSettings = Field(default_factory=FetchSettings)

    @field_validator("store_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    @model_validator(mode="after")
    def _validate_pool(self) -> "GlobalConfig":
        if self.thread_pool_workers < 1:
            raise ValueError("thread_pool_workers must be >= 1")
        return self

    def resolved_store_path(self, base_dir: Path) -> Path:
        """Return the record store path relative to the project root."""

        if not self.store_path.is_absolute():
            return (base_dir / self.store_path).resolve()
        return self.store_path


__all__ = [
    "FetchSettings",
    "GlobalConfig",
    "ScheduleConfig",
    "ScheduleType",
    "VacancyPattern",
    "WorkerConfig",
]
