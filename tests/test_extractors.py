"""Tests for deadlinks.extractors: built-in extractors and the registry."""

from __future__ import annotations

import io

import pytest

from conftest import BrokenStream, link
from deadlinks.extractors import (
    ExtractionError,
    ExtractorRegistry,
    HTMLExtractor,
    PlaintextExtractor,
    XMLExtractor,
)

SOURCE = link("http://a.test/")


def urls(links):
    return sorted(l.url for l in links)


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------

class TestHTMLExtractor:
    def test_extracts_absolute_anchor_hrefs(self):
        body = b"""
        <html><head><link href="http://a.test/style.css" rel="stylesheet"></head>
        <body>
          <a href="http://a.test/one">one</a>
          <p><a href="https://b.test/two?x=1">two</a></p>
          <a name="no-href">anchor</a>
        </body></html>
        """
        result = HTMLExtractor().extract(SOURCE, io.BytesIO(body))

        assert urls(result) == ["http://a.test/one", "https://b.test/two?x=1"]

    def test_duplicates_and_fragments_collapse(self):
        body = b"""
        <a href="http://a.test/page">1</a>
        <a href="http://A.TEST/page">2</a>
        <a href="http://a.test:80/page#section">3</a>
        """
        result = HTMLExtractor().extract(SOURCE, io.BytesIO(body))

        assert urls(result) == ["http://a.test/page"]

    def test_skips_relative_and_non_http_references(self):
        body = b"""
        <a href="/about">about</a>
        <a href="contact.html">contact</a>
        <a href="mailto:me@a.test">mail</a>
        <a href="javascript:void(0)">js</a>
        <a href="">empty</a>
        """
        assert HTMLExtractor().extract(SOURCE, io.BytesIO(body)) == set()

    def test_empty_body_has_no_links(self):
        assert HTMLExtractor().extract(SOURCE, io.BytesIO(b"")) == set()


# ---------------------------------------------------------------------------
# XML
# ---------------------------------------------------------------------------

class TestXMLExtractor:
    def test_sitemap_locations(self):
        body = b"""<?xml version="1.0" encoding="UTF-8"?>
        <urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
          <url><loc>http://a.test/one</loc></url>
          <url><loc> http://a.test/two </loc></url>
        </urlset>
        """
        result = XMLExtractor().extract(SOURCE, io.BytesIO(body))

        assert urls(result) == ["http://a.test/one", "http://a.test/two"]

    def test_rss_link_text(self):
        body = b"""<?xml version="1.0"?>
        <rss version="2.0"><channel>
          <link>http://a.test/</link>
          <item><title>Post</title><link>http://a.test/post</link></item>
        </channel></rss>
        """
        result = XMLExtractor().extract(SOURCE, io.BytesIO(body))

        assert urls(result) == ["http://a.test/", "http://a.test/post"]

    def test_atom_href_attributes(self):
        body = b"""<?xml version="1.0" encoding="utf-8"?>
        <feed xmlns="http://www.w3.org/2005/Atom">
          <link href="http://a.test/feed"/>
          <entry><link rel="alternate" href="http://a.test/entry"/></entry>
        </feed>
        """
        result = XMLExtractor().extract(SOURCE, io.BytesIO(body))

        assert urls(result) == ["http://a.test/entry", "http://a.test/feed"]


# ---------------------------------------------------------------------------
# Plaintext
# ---------------------------------------------------------------------------

class TestPlaintextExtractor:
    def test_finds_urls_on_every_line(self):
        body = (
            b"Start at http://a.test/one, then go to https://b.test/two.\n"
            b"(see http://a.test/three)\n"
            b"nothing here\n"
            b"http://a.test/one again\n"
        )
        result = PlaintextExtractor().extract(SOURCE, io.BytesIO(body))

        assert urls(result) == ["http://a.test/one", "http://a.test/three", "https://b.test/two"]

    def test_undecodable_bytes_are_tolerated(self):
        body = b"\xff\xfe http://a.test/ok \xff"
        result = PlaintextExtractor().extract(SOURCE, io.BytesIO(body))

        assert urls(result) == ["http://a.test/ok"]


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("extractor", [HTMLExtractor(), XMLExtractor(), PlaintextExtractor()])
def test_read_failure_raises_extraction_error(extractor):
    with pytest.raises(ExtractionError) as exc_info:
        extractor.extract(SOURCE, BrokenStream())

    assert exc_info.value.link == SOURCE
    assert isinstance(exc_info.value.__cause__, OSError)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class TestExtractorRegistry:
    def test_default_registers_builtins(self):
        registry = ExtractorRegistry.default()

        assert isinstance(registry.lookup("text/html; charset=UTF-8"), HTMLExtractor)
        assert isinstance(registry.lookup("text/xml; charset=UTF-8"), XMLExtractor)
        assert isinstance(registry.lookup("application/xml"), XMLExtractor)
        assert isinstance(registry.lookup("text/plain; charset=UTF-8"), PlaintextExtractor)
        assert len(registry) == 4

    def test_lookup_is_exact_string_match(self):
        registry = ExtractorRegistry.default()

        assert registry.lookup("text/html") is None
        assert registry.lookup("text/html; charset=utf-8") is None
        assert "text/html" not in registry

    def test_last_registration_wins(self):
        first, second = HTMLExtractor(), PlaintextExtractor()
        registry = ExtractorRegistry()
        registry.register("text/html", first)
        registry.register("text/html", second)

        assert registry.lookup("text/html") is second
        assert len(registry) == 1

    def test_custom_mapping_is_copied(self):
        mapping = {"application/json": PlaintextExtractor()}
        registry = ExtractorRegistry(mapping)
        mapping["text/csv"] = PlaintextExtractor()

        assert registry.content_types() == ("application/json",)
