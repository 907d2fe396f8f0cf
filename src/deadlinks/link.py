"""
Link value type and URL normalization.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, BinaryIO, Optional
from urllib.parse import urldefrag, urlparse, urlunparse

if TYPE_CHECKING:
    from deadlinks.fetcher import Fetcher

VALID_SCHEMES: frozenset[str] = frozenset(("http", "https"))


class InvalidURLError(ValueError):
    """Raised when a string cannot be turned into a crawlable Link."""


def normalize_url(url: str) -> Optional[str]:
    """
    Normalize an absolute URL for deduplication and comparison.

    - Drops fragments (#...)
    - Normalizes scheme/host case
    - Removes default ports (:80, :443)
    - Keeps querystrings (they matter for uniqueness)
    - Keeps userinfo (user:pass@) and IPv6 brackets in the authority

    Returns None for relative, non-http(s) or otherwise unparseable URLs.
    """
    if not url:
        return None

    try:
        joined, _ = urldefrag(url.strip())
        parsed = urlparse(joined)
        port = parsed.port
    except ValueError:
        # Bad port numbers and malformed IPv6 hosts end up here
        return None

    scheme = parsed.scheme.lower()
    if scheme not in VALID_SCHEMES or not parsed.hostname:
        return None

    hostname = parsed.hostname.lower()
    # IPv6 literals lose their brackets in .hostname
    if ":" in hostname:
        hostname = f"[{hostname}]"

    if (scheme == "http" and port == 80) or (scheme == "https" and port == 443):
        netloc = hostname
    elif port:
        netloc = f"{hostname}:{port}"
    else:
        netloc = hostname

    # Credentials stay part of the authority, as given
    userinfo, at, _ = parsed.netloc.rpartition("@")
    if at:
        netloc = f"{userinfo}@{netloc}"

    return urlunparse((
        scheme,
        netloc,
        parsed.path or "/",
        parsed.params,
        parsed.query,
        ""  # No fragment
    ))


@dataclass(frozen=True, slots=True)
class Link:
    """A fetchable resource, identified by its normalized URL."""
    url: str

    @classmethod
    def parse(cls, raw: str) -> Link:
        """Build a Link from a raw URL string, raising InvalidURLError if it is not usable."""
        normalized = normalize_url(raw)
        if normalized is None:
            raise InvalidURLError(f"Invalid url: {raw!r}")
        return cls(normalized)

    @classmethod
    def try_parse(cls, raw: str) -> Optional[Link]:
        normalized = normalize_url(raw)
        return cls(normalized) if normalized else None

    @property
    def authority(self) -> str:
        return urlparse(self.url).netloc

    def same_authority(self, authority: str) -> bool:
        """Exact match on host[:port]; subdomains are different authorities."""
        return self.authority == authority

    def identity_key(self) -> str:
        return self.url

    def sort_key(self) -> str:
        return self.url

    def resolve(self, fetcher: Fetcher) -> Resource:
        """Fetch this link. Raises FetchError on transport failure."""
        return fetcher.fetch(self)

    def __str__(self) -> str:
        return self.url


@dataclass(slots=True)
class Resource:
    """
    Outcome of resolving a Link.

    content_type is None exactly when the server confirmed the resource does
    not exist; stream is then None as well.
    """
    content_type: Optional[str] = None
    stream: Optional[BinaryIO] = field(default=None, repr=False)

    @property
    def missing(self) -> bool:
        return not self.content_type

    def close(self) -> None:
        if self.stream is not None:
            self.stream.close()

    def __enter__(self) -> Resource:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
