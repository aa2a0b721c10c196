"""Exception hierarchy shared by the crawler packages."""

from __future__ import annotations


class CrawlerError(Exception):
    """Base class for all vacancy-crawler errors."""


class DataUnavailable(CrawlerError):
    """Raised when the record store cannot be read from or written to."""


class IllegalStateTransition(CrawlerError):
    """Raised when a worker is asked to move into a state it cannot reach."""

    def __init__(self, current: object, target: object) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot transition worker from {current} to {target}")


__all__ = ["CrawlerError", "DataUnavailable", "IllegalStateTransition"]
