from __future__ import annotations

import httpx
import pytest

from vacancy_crawler.config import FetchSettings
from vacancy_crawler.engine.fetcher import DEFAULT_USER_AGENT, PageFetcher
from vacancy_crawler.fleet import Flag


def _fetcher(handler, **settings) -> PageFetcher:
    return PageFetcher(FetchSettings(**settings), transport=httpx.MockTransport(handler))


@pytest.mark.parametrize(
    ("status", "content_type", "flag"),
    [
        (200, "text/html; charset=utf-8", Flag.VISITED),
        (200, "application/xhtml+xml", Flag.VISITED),
        (200, "application/pdf", Flag.FILE),
        (404, "text/html", Flag.DEAD),
        (410, "text/html", Flag.DEAD),
        (429, "text/html", Flag.RETRY),
        (503, "text/html", Flag.RETRY),
    ],
)
def test_fetch_classifies_responses(status: int, content_type: str, flag: Flag) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, headers={"content-type": content_type}, text="<p>body</p>")

    fetcher = _fetcher(handler)
    outcome = fetcher.fetch("https://jobs.example.com/a")
    fetcher.close()

    assert outcome.flag is flag
    assert outcome.status_code == status
    assert outcome.is_page is (flag is Flag.VISITED)
    assert (outcome.text == "<p>body</p>") is (flag is Flag.VISITED)


def test_transport_errors_become_retry() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    fetcher = _fetcher(handler)
    outcome = fetcher.fetch("https://jobs.example.com/slow")
    fetcher.close()

    assert outcome.flag is Flag.RETRY
    assert outcome.status_code is None
    assert "timed out" in (outcome.error or "")


def test_user_agent_header_and_redirects() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/old":
            return httpx.Response(301, headers={"location": "https://jobs.example.com/new"})
        return httpx.Response(200, headers={"content-type": "text/html"}, text="ok")

    fetcher = _fetcher(handler)
    outcome = fetcher.fetch("https://jobs.example.com/old")
    fetcher.close()

    assert outcome.url == "https://jobs.example.com/new"
    assert seen[0].headers["user-agent"] == DEFAULT_USER_AGENT

    custom = _fetcher(handler, user_agent="vacancy-bot/1.0")
    custom.fetch("https://jobs.example.com/new")
    custom.close()
    assert seen[-1].headers["user-agent"] == "vacancy-bot/1.0"


def test_polite_delay_uses_range(monkeypatch: pytest.MonkeyPatch) -> None:
    sleeps: list[float] = []
    monkeypatch.setattr("vacancy_crawler.engine.fetcher.time.sleep", sleeps.append)
    monkeypatch.setattr("vacancy_crawler.engine.fetcher.random.uniform", lambda low, high: high)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"content-type": "text/html"}, text="ok")

    fetcher = _fetcher(handler, delay_range=(0.1, 0.2))
    fetcher.fetch("https://jobs.example.com/")
    fetcher.close()
    assert sleeps == [0.2]

    silent = _fetcher(handler)
    silent.fetch("https://jobs.example.com/")
    silent.close()
    assert sleeps == [0.2]
