"""Engine components: admission filter, fetch, parse, dedup, thread pool."""

from .blacklist import BlacklistFilter
from .dedup import DeduplicationEngine, SubmitOutcome, fingerprint
from .fetcher import FetchOutcome, PageFetcher
from .parser import PageParser
from .thread_pool import ThreadPoolManager

__all__ = [
    "BlacklistFilter",
    "DeduplicationEngine",
    "FetchOutcome",
    "PageFetcher",
    "PageParser",
    "SubmitOutcome",
    "ThreadPoolManager",
    "fingerprint",
]
