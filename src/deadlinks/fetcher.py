"""
HTTP resolution of Links into content types and byte streams.
"""
from __future__ import annotations

import io
from typing import Optional

import requests

from deadlinks.link import Link, Resource

# Status codes that mean "this resource does not exist" rather than "broken transport"
MISSING_STATUS_CODES: frozenset[int] = frozenset((404, 410))

# RFC 9110: a body without Content-Type may be treated as opaque bytes
DEFAULT_CONTENT_TYPE = "application/octet-stream"


class FetchError(Exception):
    """Transport-level failure while resolving a Link."""

    def __init__(self, link: Link, reason: str, status_code: Optional[int] = None):
        super().__init__(f"{link}: {reason}")
        self.link = link
        self.reason = reason
        self.status_code = status_code


class ResponseStream:
    """File-like view over a streamed requests.Response body."""

    def __init__(self, response: requests.Response):
        self._response = response
        self._buffer: Optional[io.BytesIO] = None

    def read(self, size: int = -1) -> bytes:
        """Read up to size bytes (all remaining when size is negative); b"" at EOF."""
        if self._buffer is None:
            try:
                body = self._response.content
            except requests.RequestException as e:
                # Broken chunked encoding, reset connections, read timeouts
                raise OSError(f"Failed reading body of {self._response.url}: {e}") from e
            self._buffer = io.BytesIO(body)
        return self._buffer.read(-1 if size is None else size)

    def close(self) -> None:
        self._response.close()


class Fetcher:
    """Resolves Links over a shared requests.Session."""

    def __init__(
        self,
        timeout_s: float = 15.0,
        user_agent: str = "DeadLinkChecker/1.0",
        session: Optional[requests.Session] = None,
    ):
        self.timeout_s = timeout_s
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = user_agent

    def fetch(self, link: Link) -> Resource:
        """
        Fetch a link.

        Returns a missing Resource for 404/410, a Resource with a content type
        and readable stream on success, and raises FetchError otherwise.
        """
        try:
            resp = self.session.get(
                link.url, timeout=self.timeout_s, allow_redirects=True, stream=True
            )
        except requests.RequestException as e:
            raise FetchError(link, str(e) or type(e).__name__) from e

        if resp.status_code in MISSING_STATUS_CODES:
            resp.close()
            return Resource(content_type=None)

        if resp.status_code >= 400:
            resp.close()
            raise FetchError(link, f"HTTP {resp.status_code}", status_code=resp.status_code)

        content_type = resp.headers.get("content-type") or DEFAULT_CONTENT_TYPE
        return Resource(content_type=content_type, stream=ResponseStream(resp))

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> Fetcher:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
