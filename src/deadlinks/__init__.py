"""
Dead link checker: crawls a site from a root URL, level by level, and
reports links that are missing or unreachable.
"""
from deadlinks.checker import Checker, CrawlReport, check
from deadlinks.config import CheckerConfig
from deadlinks.core import CrawlState, Crawler
from deadlinks.extractors import ExtractionError, ExtractorRegistry
from deadlinks.fetcher import Fetcher, FetchError
from deadlinks.link import InvalidURLError, Link

__version__ = "1.0.0"
__all__ = [
    "check",
    "Checker",
    "CheckerConfig",
    "CrawlReport",
    "CrawlState",
    "Crawler",
    "ExtractionError",
    "ExtractorRegistry",
    "Fetcher",
    "FetchError",
    "InvalidURLError",
    "Link",
]
