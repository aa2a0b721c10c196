"""HTTP fetching with outcome classification."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field

import httpx
import structlog

from ..config import FetchSettings
from ..fleet.states import Flag

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


@dataclass(slots=True)
class FetchOutcome:
    """Result of fetching one URL, already classified into a flag."""

    url: str
    flag: Flag
    status_code: int | None = None
    text: str = ""
    content_type: str | None = None
    error: str | None = field(default=None, repr=False)

    @property
    def is_page(self) -> bool:
        return self.flag is Flag.VISITED


class PageFetcher:
    """Fetch pages for one worker and classify what happened."""

    def __init__(
        self,
        settings: FetchSettings,
        logger: structlog.BoundLogger | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger or structlog.get_logger("vacancy_crawler.fetcher")
        self._client = httpx.Client(
            follow_redirects=True,
            timeout=settings.timeout,
            headers={"User-Agent": settings.user_agent or DEFAULT_USER_AGENT},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def fetch(self, url: str) -> FetchOutcome:
        self._polite_delay()
        try:
            response = self._client.get(url)
        except httpx.HTTPError as exc:
            self.logger.warning("fetch_error", url=url, error=str(exc))
            return FetchOutcome(url=url, flag=Flag.RETRY, error=str(exc))
        return self.classify(url, response)

    @staticmethod
    def classify(url: str, response: httpx.Response) -> FetchOutcome:
        status = response.status_code
        content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
        if status == 429 or status >= 500:
            flag = Flag.RETRY
        elif status >= 400:
            flag = Flag.DEAD
        elif content_type and content_type not in HTML_CONTENT_TYPES:
            flag = Flag.FILE
        else:
            flag = Flag.VISITED
        return FetchOutcome(
            url=str(response.url) if flag is Flag.VISITED else url,
            flag=flag,
            status_code=status,
            text=response.text if flag is Flag.VISITED else "",
            content_type=content_type or None,
        )

    def _polite_delay(self) -> None:
        low, high = self.settings.delay_range
        if high > 0:
            time.sleep(min(random.uniform(low, high), 5.0))


__all__ = ["FetchOutcome", "PageFetcher"]
