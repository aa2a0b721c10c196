"""Configuration loading helpers for vacancy-crawler."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import yaml

from .models import GlobalConfig, WorkerConfig

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
GLOBAL_CONFIG_FILENAME = "global_config.yaml"
WORKER_CONFIG_SUFFIX = ".yaml"


def _slugify(name: str) -> str:
    return "".join(ch.lower() if ch.isalnum() else "-" for ch in name).strip("-")


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    data_dir: Path | None = None
    workers_dir: Path | None = None
    store_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get("VACANCY_CRAWLER_HOME")
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path(__file__).resolve().parents[2]).resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.workers_dir = (self.data_dir / "workers").resolve()
        self.store_dir = (self.data_dir / "store").resolve()
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.workers_dir, self.store_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def global_config_path(self) -> Path:
        return self.data_dir / GLOBAL_CONFIG_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._global_cache: GlobalConfig | None = None

    # ------------------------------------------------------------------
    # Global configuration helpers
    # ------------------------------------------------------------------
    def load_global_config(self) -> GlobalConfig:
        if self._global_cache is not None:
            return self._global_cache
        path = self.locator.global_config_path()
        if path.exists():
            payload = _read_file(path)
            global_cfg = GlobalConfig.model_validate(payload)
        else:
            global_cfg = GlobalConfig()
            self.save_global_config(global_cfg)
        self._global_cache = global_cfg
        return global_cfg

    def save_global_config(self, config: GlobalConfig) -> None:
        path = self.locator.global_config_path()
        payload = config.model_dump(mode="json")
        _write_file(path, payload)
        self._global_cache = config

    def store_path(self) -> Path:
        return self.load_global_config().resolved_store_path(self.locator.project_root)

    # ------------------------------------------------------------------
    # Worker configuration helpers
    # ------------------------------------------------------------------
    def worker_path(self, name: str) -> Path:
        slug = _slugify(name)
        return self.locator.workers_dir / f"{slug}{WORKER_CONFIG_SUFFIX}"

    def list_worker_files(self) -> Iterable[Path]:
        for path in sorted(self.locator.workers_dir.glob("*")):
            if path.is_file() and path.suffix in CONFIG_EXTENSIONS:
                yield path

    def list_workers(self) -> list[WorkerConfig]:
        return [self.load_worker(path) for path in self.list_worker_files()]

    def load_worker(self, identifier: str | Path) -> WorkerConfig:
        path = identifier if isinstance(identifier, Path) else self.worker_path(identifier)
        if not path.exists():
            raise FileNotFoundError(f"Worker configuration not found: {identifier}")
        payload = _read_file(path)
        return WorkerConfig.model_validate(payload)

    def save_worker(self, config: WorkerConfig) -> Path:
        path = self.worker_path(config.name)
        payload = config.model_dump(mode="json", exclude_unset=True)
        payload.setdefault("worker_id", config.worker_id)
        payload.setdefault("name", config.name)
        _write_file(path, payload)
        return path

    def delete_worker(self, name: str) -> None:
        path = self.worker_path(name)
        if path.exists():
            path.unlink()


__all__ = ["CONFIG_EXTENSIONS", "ConfigLocator", "ConfigRepository"]
