"""DOM parsing helpers: link discovery and vacancy field extraction."""

from __future__ import annotations

from urllib.parse import urldefrag, urljoin

from selectolax.parser import HTMLParser

from ..config import VacancyPattern
from ..records import VacancyFields

_SCALAR_FIELDS = ("title", "employer", "employment_type", "location")
_TAG_FIELDS = ("skills", "educations", "locations")
_SKIPPED_SCHEMES = ("javascript:", "mailto:", "tel:")


def _selectors(config: str | list[str] | None) -> list[str]:
    if config is None:
        return []
    items = config if isinstance(config, list) else [config]
    return [item.strip() for item in items if item and item.strip()]


class PageParser:
    """Parse crawled pages according to a worker's vacancy pattern."""

    def extract_links(self, html: str, base_url: str) -> list[str]:
        parser = HTMLParser(html)
        links: list[str] = []
        seen: set[str] = set()
        for node in parser.css("a[href]"):
            href = (node.attributes.get("href") or "").strip()
            if not href or href.startswith("#") or href.lower().startswith(_SKIPPED_SCHEMES):
                continue
            full_url, _ = urldefrag(urljoin(base_url, href))
            if full_url not in seen:
                seen.add(full_url)
                links.append(full_url)
        return links

    def extract_vacancy(self, html: str, pattern: VacancyPattern) -> VacancyFields | None:
        """Return the vacancy on the page, or ``None`` for non-vacancy pages."""

        parser = HTMLParser(html)
        description = self._first_text(parser, pattern.description)
        if not description:
            return None
        data: dict[str, object] = {"description": description}
        for name in _SCALAR_FIELDS:
            data[name] = self._first_text(parser, getattr(pattern, name))
        for name in _TAG_FIELDS:
            data[name] = self._all_texts(parser, getattr(pattern, name))
        return VacancyFields(**data)  # type: ignore[arg-type]

    @staticmethod
    def _first_text(parser: HTMLParser, config: str | list[str] | None) -> str | None:
        # fallback selectors: first one with text wins
        for selector in _selectors(config):
            node = parser.css_first(selector)
            if node is None:
                continue
            text = node.text(separator=" ", strip=True)
            if text:
                return text
        return None

    @staticmethod
    def _all_texts(parser: HTMLParser, config: str | list[str] | None) -> list[str]:
        values: list[str] = []
        for selector in _selectors(config):
            for node in parser.css(selector):
                text = node.text(separator=" ", strip=True)
                if text:
                    values.append(text)
            if values:
                break
        return values


__all__ = ["PageParser"]
