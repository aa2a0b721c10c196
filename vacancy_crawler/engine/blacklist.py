"""Per-worker URL admission gate."""

from __future__ import annotations

import structlog

from ..errors import DataUnavailable
from ..records import BlacklistEntry, EntityKind
from ..store import RecordStore


class BlacklistFilter:
    """Decide whether a worker may follow a URL.

    Entries are read once, at construction; the filter never goes back to the
    store afterwards, so :meth:`is_allowed` is a pure function of the loaded
    words and its argument.
    """

    FRAGMENT_MARKER = "#"

    def __init__(
        self,
        worker_id: int,
        base_url: str,
        store: RecordStore,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.worker_id = worker_id
        self.base_url = base_url
        self.logger = logger or structlog.get_logger("vacancy_crawler.blacklist")
        try:
            entries = store.find_by_equals(EntityKind.BLACKLIST, "worker_id", worker_id)
        except DataUnavailable:
            self.logger.error("blacklist_load_failed", worker_id=worker_id)
            raise
        self._words: tuple[str, ...] = tuple(
            entry.word for entry in entries if isinstance(entry, BlacklistEntry) and entry.word
        )
        self.logger.info("blacklist_loaded", worker_id=worker_id, entries=len(self._words))

    @property
    def words(self) -> tuple[str, ...]:
        return self._words

    def is_allowed(self, url: str) -> bool:
        if self.base_url not in url or self.FRAGMENT_MARKER in url:
            return False
        return not any(word in url for word in self._words)

    def filter(self, urls: list[str]) -> list[str]:
        return [url for url in urls if self.is_allowed(url)]


__all__ = ["BlacklistFilter"]
