"""
Traversal engine: depth-bounded, authority-scoped, cycle-free crawl.
"""
from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Set

from deadlinks.config import DEFAULT_THRESHOLD
from deadlinks.extractors import ExtractionError, ExtractorRegistry
from deadlinks.fetcher import Fetcher, FetchError
from deadlinks.link import Link

# Outcomes passed to the visit callback
MISSING = "404"
FAILED = "ERR"
BROKEN_BODY = "BODY"
OFF_AUTHORITY = "EXT"
UNKNOWN_TYPE = "TYPE?"
EXTRACTED = "OK"

VisitCallback = Callable[[Link, str, int], None]


@dataclass(slots=True)
class CrawlState:
    """
    Bookkeeping shared by the traversal and the progress reporter.

    All containers only ever grow and max_depth only ever increases, so
    readers may poll the sizes without taking the lock.
    """
    authority: str
    seen: Set[Link] = field(default_factory=set)
    dead: Set[Link] = field(default_factory=set)
    unknown_content_types: Set[str] = field(default_factory=set)
    max_depth: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def claim(self, link: Link) -> bool:
        """Add link to the seen set; True only for the first caller."""
        with self._lock:
            if link in self.seen:
                return False
            self.seen.add(link)
            return True

    def mark_dead(self, link: Link) -> None:
        with self._lock:
            self.dead.add(link)

    def record_unknown(self, content_type: str) -> None:
        with self._lock:
            self.unknown_content_types.add(content_type)

    def reach_depth(self, depth: int) -> None:
        with self._lock:
            if depth > self.max_depth:
                self.max_depth = depth


class Crawler:
    """
    Walks the link graph one frontier (hop distance from the root) at a time.

    Depths 0..threshold are processed. Links first discovered beyond the
    threshold are never claimed, fetched or extracted.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        registry: Optional[ExtractorRegistry] = None,
        threshold: int = DEFAULT_THRESHOLD,
        max_workers: int = 1,
        on_visit: Optional[VisitCallback] = None,
    ):
        self.fetcher = fetcher
        self.registry = registry if registry is not None else ExtractorRegistry.default()
        self.threshold = threshold
        self.max_workers = max_workers
        self.on_visit = on_visit

    def crawl(self, root: Link, state: CrawlState) -> None:
        """Crawl from root, accumulating results in state."""
        frontier: Set[Link] = {root}
        depth = 0

        while frontier:
            state.reach_depth(depth)
            if depth > self.threshold:
                return

            next_frontier: Set[Link] = set()
            for outgoing in self._visit_frontier(frontier, state):
                next_frontier |= outgoing

            frontier = next_frontier
            depth += 1

    def _visit_frontier(self, frontier: Set[Link], state: CrawlState) -> Iterable[Set[Link]]:
        # Siblings in a frontier are independent until their own extraction completes
        if self.max_workers <= 1 or len(frontier) <= 1:
            return [self.visit(link, state) for link in frontier]

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            results: List[Set[Link]] = list(
                executor.map(lambda link: self.visit(link, state), frontier)
            )
        return results

    def visit(self, link: Link, state: CrawlState) -> Set[Link]:
        """
        Process a single link and return the links to follow from it.

        Returns an empty set when the link was already claimed, is dead,
        lives on another authority, or has no registered extractor.
        """
        if not state.claim(link):
            return set()

        try:
            resource = link.resolve(self.fetcher)
        except FetchError:
            state.mark_dead(link)
            self._notify(link, FAILED)
            return set()

        with resource:
            # Missing links are dead regardless of authority
            if resource.missing:
                state.mark_dead(link)
                self._notify(link, MISSING)
                return set()

            # Alive (it has a content type), but we never parse other sites
            if not link.same_authority(state.authority):
                self._notify(link, OFF_AUTHORITY)
                return set()

            extractor = self.registry.lookup(resource.content_type)
            if extractor is None:
                state.record_unknown(resource.content_type)
                self._notify(link, UNKNOWN_TYPE)
                return set()

            try:
                outgoing = extractor.extract(link, resource.stream)
            except ExtractionError:
                state.mark_dead(link)
                self._notify(link, BROKEN_BODY)
                return set()

        self._notify(link, EXTRACTED, len(outgoing))
        return outgoing

    def _notify(self, link: Link, outcome: str, new_links: int = 0) -> None:
        if self.on_visit is not None:
            self.on_visit(link, outcome, new_links)
