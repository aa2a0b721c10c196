"""Structured logging for the crawler fleet.

Everything goes through structlog and ends up in stdlib handlers that render
JSON lines: warnings on the console, the full stream in ``crawler.log``,
errors in ``error.log`` and one file per worker under ``workers/``.
"""

from __future__ import annotations

import logging
import logging.config
import os
from collections import deque
from pathlib import Path
from typing import Any

import structlog

APP_LOGGER = "vacancy_crawler"
CRAWLER_LOG = "crawler.log"
ERROR_LOG = "error.log"
WORKER_LOG_DIR = "workers"

_JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_configured = False


def log_dir() -> Path:
    home = os.environ.get("VACANCY_CRAWLER_HOME")
    root = Path(home).expanduser().resolve() if home else Path(__file__).resolve().parents[1]
    return root / "logs"


def worker_log_path(worker_name: str) -> Path:
    return log_dir() / WORKER_LOG_DIR / f"{worker_name}.log"


def _handler_table(directory: Path, level: str) -> dict[str, dict[str, Any]]:
    # name -> (handler class, threshold, target file)
    table = {
        "console": ("logging.StreamHandler", "WARNING", None),
        "crawler_file": ("logging.FileHandler", level, directory / CRAWLER_LOG),
        "error_file": ("logging.FileHandler", "ERROR", directory / ERROR_LOG),
    }
    handlers: dict[str, dict[str, Any]] = {}
    for name, (cls, threshold, target) in table.items():
        spec: dict[str, Any] = {"class": cls, "level": threshold, "formatter": "json"}
        if target is not None:
            spec.update(filename=str(target), encoding="utf-8")
        handlers[name] = spec
    return handlers


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Set up handlers and structlog once per process; return the app logger."""

    global _configured
    directory = log_dir()
    (directory / WORKER_LOG_DIR).mkdir(parents=True, exist_ok=True)
    if _configured:
        return structlog.get_logger(APP_LOGGER)

    level = "DEBUG" if verbose else "INFO"
    handlers = _handler_table(directory, level)
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {"()": "pythonjsonlogger.jsonlogger.JsonFormatter", "fmt": _JSON_FORMAT},
            },
            "handlers": handlers,
            "loggers": {APP_LOGGER: {"handlers": list(handlers), "level": level, "propagate": False}},
        }
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True
    return structlog.get_logger(APP_LOGGER)


def worker_logger(worker_name: str, verbose: bool = False) -> structlog.BoundLogger:
    """Logger bound to ``worker=<name>`` that also writes ``workers/<name>.log``.

    Worker loggers are children of the app logger, so their events reach the
    global files as well.
    """

    configure_logging(verbose)
    target = worker_log_path(worker_name)
    name = f"{APP_LOGGER}.worker.{worker_name}"
    std_logger = logging.getLogger(name)
    attached = {getattr(handler, "baseFilename", None) for handler in std_logger.handlers}
    if str(target) not in attached:
        handler = logging.FileHandler(target, encoding="utf-8")
        handler.setLevel(logging.INFO)
        app_handlers = logging.getLogger(APP_LOGGER).handlers
        if app_handlers:
            handler.setFormatter(app_handlers[0].formatter)
        std_logger.addHandler(handler)
    return structlog.get_logger(name).bind(worker=worker_name)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    if not path.is_file():
        return []
    with path.open("r", encoding="utf-8", errors="replace") as stream:
        return list(deque(stream, maxlen=line_count))


def available_worker_logs() -> list[Path]:
    return sorted((log_dir() / WORKER_LOG_DIR).glob("*.log"))


__all__ = [
    "available_worker_logs",
    "configure_logging",
    "log_dir",
    "tail_log",
    "worker_log_path",
    "worker_logger",
]
