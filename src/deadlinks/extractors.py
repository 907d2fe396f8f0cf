"""
Link extraction from resolved bodies, dispatched by content type.
"""
from __future__ import annotations

import re
from typing import BinaryIO, Dict, Iterable, Iterator, Mapping, Optional, Protocol, Set, Tuple

from bs4 import BeautifulSoup, SoupStrainer

from deadlinks.link import Link

# SoupStrainer to parse only <a> tags (faster link extraction)
LINK_STRAINER = SoupStrainer("a", href=True)

# Absolute http(s) URLs in free text; stops at whitespace, quotes and angle brackets
PLAINTEXT_URL_PATTERN = re.compile(r"""https?://[^\s<>"'`]+""", re.IGNORECASE)

# Punctuation that usually ends a sentence rather than a URL
TRAILING_PUNCTUATION = ".,;:!?)]}"


class ExtractionError(Exception):
    """Reading the body of a resolved Link failed."""

    def __init__(self, link: Link, reason: str):
        super().__init__(f"{link}: {reason}")
        self.link = link
        self.reason = reason


class Extractor(Protocol):
    """Turns the body of a resolved Link into its outgoing Links."""

    content_types: Tuple[str, ...]

    def extract(self, link: Link, stream: BinaryIO) -> Set[Link]:
        ...


def _read_body(link: Link, stream: BinaryIO) -> bytes:
    try:
        return stream.read()
    except OSError as e:
        raise ExtractionError(link, str(e)) from e


def _to_links(candidates: Iterable[str]) -> Set[Link]:
    """Keep only absolute http(s) candidates; relative references are not resolved."""
    links: Set[Link] = set()
    for candidate in candidates:
        link = Link.try_parse(candidate)
        if link is not None:
            links.add(link)
    return links


class HTMLExtractor:
    """href values of <a> tags, parsed with lxml."""

    content_types: Tuple[str, ...] = ("text/html; charset=UTF-8",)

    def extract(self, link: Link, stream: BinaryIO) -> Set[Link]:
        body = _read_body(link, stream)
        if not body:
            return set()
        soup = BeautifulSoup(body, "lxml", parse_only=LINK_STRAINER)
        return _to_links(a["href"] for a in soup.find_all("a") if a.get("href"))


class XMLExtractor:
    """
    Links in XML documents.

    Covers sitemaps (<loc>), RSS (<link> text) and Atom (href attributes).
    """

    content_types: Tuple[str, ...] = ("text/xml; charset=UTF-8", "application/xml")

    def extract(self, link: Link, stream: BinaryIO) -> Set[Link]:
        body = _read_body(link, stream)
        if not body:
            return set()
        soup = BeautifulSoup(body, "xml")
        return _to_links(self._candidates(soup))

    @staticmethod
    def _candidates(soup: BeautifulSoup) -> Iterator[str]:
        for tag in soup.find_all(["loc", "link"]):
            text = tag.get_text(strip=True)
            if text:
                yield text
        for tag in soup.find_all(href=True):
            yield tag["href"]


class PlaintextExtractor:
    """Absolute URLs found line by line in plain text."""

    content_types: Tuple[str, ...] = ("text/plain; charset=UTF-8",)

    def extract(self, link: Link, stream: BinaryIO) -> Set[Link]:
        text = _read_body(link, stream).decode("utf-8", errors="replace")
        return _to_links(self._candidates(text))

    @staticmethod
    def _candidates(text: str) -> Iterator[str]:
        for line in text.splitlines():
            for match in PLAINTEXT_URL_PATTERN.finditer(line):
                yield match.group(0).rstrip(TRAILING_PUNCTUATION)


BUILTIN_EXTRACTORS: Tuple[Extractor, ...] = (
    HTMLExtractor(),
    XMLExtractor(),
    PlaintextExtractor(),
)


class ExtractorRegistry:
    """
    Content type -> Extractor mapping.

    Keys are matched as exact strings, charset parameter included:
    "text/html" and "text/html; charset=UTF-8" are different keys.
    """

    def __init__(self, extractors: Optional[Mapping[str, Extractor]] = None):
        self._extractors: Dict[str, Extractor] = dict(extractors or {})

    @classmethod
    def default(cls) -> ExtractorRegistry:
        registry = cls()
        for extractor in BUILTIN_EXTRACTORS:
            for content_type in extractor.content_types:
                registry.register(content_type, extractor)
        return registry

    def register(self, content_type: str, extractor: Extractor) -> None:
        """Register an extractor; a later registration for the same key wins."""
        self._extractors[content_type] = extractor

    def lookup(self, content_type: str) -> Optional[Extractor]:
        return self._extractors.get(content_type)

    def content_types(self) -> Tuple[str, ...]:
        return tuple(sorted(self._extractors))

    def __contains__(self, content_type: object) -> bool:
        return content_type in self._extractors

    def __len__(self) -> int:
        return len(self._extractors)
