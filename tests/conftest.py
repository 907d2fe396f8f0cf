"""Shared test helpers: an in-memory web for the traversal tests.

No real HTTP connections are made; ``FakeFetcher`` answers from a dict of
URL -> page and records every fetch so tests can assert on visit counts.
"""

from __future__ import annotations

import io
import threading
from collections import Counter
from typing import Dict, Optional, Tuple, Union

from deadlinks.core import CrawlState
from deadlinks.fetcher import FetchError
from deadlinks.link import Link, Resource

HTML = "text/html; charset=UTF-8"

# (content_type, body) for a live page, None for a confirmed 404,
# an exception instance to simulate a transport failure.
Page = Union[Tuple[str, bytes], None, Exception]


def html_page(*hrefs: str) -> Tuple[str, bytes]:
    """Build an HTML page linking to *hrefs*."""
    anchors = "\n".join(f'<a href="{href}">{href}</a>' for href in hrefs)
    return HTML, f"<html><body>\n{anchors}\n</body></html>".encode()


class FakeFetcher:
    """Stand-in for ``deadlinks.fetcher.Fetcher`` backed by a dict."""

    def __init__(self, pages: Dict[str, Page]):
        self.pages = pages
        self.fetched: Counter = Counter()
        self._lock = threading.Lock()

    def fetch(self, link: Link) -> Resource:
        with self._lock:
            self.fetched[link.url] += 1

        if link.url not in self.pages:
            raise FetchError(link, "connection refused")

        page = self.pages[link.url]
        if page is None:
            return Resource(content_type=None)
        if isinstance(page, Exception):
            raise FetchError(link, str(page)) from page

        content_type, body = page
        return Resource(content_type=content_type, stream=io.BytesIO(body))

    def close(self) -> None:
        pass


class BrokenStream:
    """A body whose read fails halfway through the transfer."""

    closed = False

    def read(self, size: int = -1) -> bytes:
        raise OSError("connection reset by peer")

    def close(self) -> None:
        self.closed = True


def link(url: str) -> Link:
    return Link.parse(url)


def state_for(root: str, authority: Optional[str] = None):
    return CrawlState(authority=authority or Link.parse(root).authority)
