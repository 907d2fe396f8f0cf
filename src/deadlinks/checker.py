"""
Crawl orchestration: runs the traversal in a worker thread while the
calling thread reports progress, then assembles the final report.
"""
from __future__ import annotations

import sys
import threading
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from deadlinks.config import CheckerConfig
from deadlinks.core import CrawlState, Crawler
from deadlinks.extractors import Extractor, ExtractorRegistry
from deadlinks.fetcher import Fetcher
from deadlinks.link import Link


@dataclass(slots=True)
class CrawlReport:
    """Result of a completed crawl."""
    root: str
    pages_scanned: int = 0
    max_depth: int = 0
    dead_links: List[str] = field(default_factory=list)
    unknown_content_types: List[str] = field(default_factory=list)
    seen: List[str] = field(default_factory=list)

    @property
    def dead_count(self) -> int:
        return len(self.dead_links)

    @classmethod
    def from_state(cls, root: Link, state: CrawlState) -> CrawlReport:
        return cls(
            root=root.url,
            pages_scanned=len(state.seen),
            max_depth=state.max_depth,
            dead_links=[link.url for link in sorted(state.dead, key=Link.sort_key, reverse=True)],
            unknown_content_types=sorted(state.unknown_content_types),
            seen=[link.url for link in sorted(state.seen, key=Link.sort_key)],
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["dead_count"] = self.dead_count
        return data


def print_progress(state: CrawlState) -> None:
    """Print a progress line to stderr."""
    sys.stderr.write(
        f"Processed {len(state.seen)} pages at depth {state.max_depth}, "
        f"found {len(state.dead)} dead links so far\n"
    )
    sys.stderr.flush()


def print_scan_line(link: Link, outcome: str, new_links: int) -> None:
    """Print single scan result line."""
    sys.stderr.write(f"  → {outcome} {link} (+{new_links} links)\n")
    sys.stderr.flush()


class Checker:
    """
    Dead link checker for a single root URL.

    A custom extractor mapping replaces the built-in extractors entirely.
    """

    def __init__(
        self,
        config: Optional[CheckerConfig] = None,
        extractors: Optional[Mapping[str, Extractor]] = None,
        fetcher: Optional[Fetcher] = None,
    ):
        self.config = config or CheckerConfig()
        self.config.validate()
        self.registry = (
            ExtractorRegistry(extractors) if extractors is not None else ExtractorRegistry.default()
        )
        # Only a fetcher built here is closed by close()
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or Fetcher(
            timeout_s=self.config.timeout_s, user_agent=self.config.user_agent
        )
        self.state: Optional[CrawlState] = None

    def check(self, root_url: str) -> CrawlReport:
        """
        Crawl from root_url and return the report.

        Raises InvalidURLError before any traversal if root_url is unusable.
        """
        root = Link.parse(root_url)
        state = CrawlState(authority=root.authority)
        self.state = state

        crawler = Crawler(
            fetcher=self.fetcher,
            registry=self.registry,
            threshold=self.config.threshold,
            max_workers=self.config.max_workers,
            on_visit=print_scan_line if self.config.verbose else None,
        )

        sys.stderr.write(f"Going to start checker on url: {root}\n")
        errors: List[Exception] = []

        def run() -> None:
            try:
                crawler.crawl(root, state)
            except Exception as e:  # re-raised below in the calling thread
                errors.append(e)

        worker = threading.Thread(target=run, name="Link Checker Worker Thread", daemon=True)
        worker.start()

        while worker.is_alive():
            print_progress(state)
            worker.join(self.config.progress_interval)

        if errors:
            raise errors[0]

        return CrawlReport.from_state(root, state)

    def seen(self) -> List[Link]:
        """All links visited by the last run."""
        if self.state is None:
            return []
        return sorted(self.state.seen, key=Link.sort_key)

    def close(self) -> None:
        if self._owns_fetcher:
            self.fetcher.close()

    def __enter__(self) -> Checker:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def check(
    root_url: str,
    config: Optional[CheckerConfig] = None,
    extractors: Optional[Mapping[str, Extractor]] = None,
) -> CrawlReport:
    """Run a dead link check with a fresh Checker."""
    with Checker(config=config, extractors=extractors) as checker:
        return checker.check(root_url)
