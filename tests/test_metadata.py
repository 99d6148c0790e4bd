"""Tests for meta tag parsing and page fetching."""

import requests

from ogparser.config import ParserConfig
from ogparser.metadata import MetadataFetcher, normalize_property, parse_tags

from conftest import FakeResponse, FakeSession

PAGE_URL = "https://example.com/article"


def test_normalize_property():
    assert normalize_property("og:title") == "title"
    assert normalize_property("twitter:title") == "title"
    assert normalize_property("twitter:image:src") == "image"
    assert normalize_property("og:image:src") == "image:src"
    assert normalize_property("OG:title") == "OG:title"
    assert normalize_property("description") == "description"


def test_later_meta_tag_wins_regardless_of_namespace():
    html = """
    <head>
      <meta property="og:title" content="A">
      <meta name="twitter:title" content="B">
    </head>
    """
    assert parse_tags(html)["title"] == "B"


def test_open_graph_after_twitter_wins():
    html = """
    <meta name="twitter:image:src" content="https://example.com/t.png">
    <meta property="og:image" content="https://example.com/og.png">
    """
    assert parse_tags(html)["image"] == "https://example.com/og.png"


def test_title_element_fallback_is_entity_decoded():
    html = "<html><head><title>Hello &amp; World</title></head><body></body></html>"
    assert parse_tags(html) == {"title": "Hello & World"}


def test_title_element_ignored_when_meta_title_present():
    html = '<title>Page</title><meta property="og:title" content="Preview">'
    assert parse_tags(html)["title"] == "Preview"


def test_empty_meta_title_falls_back_to_title_element():
    html = '<meta property="og:title" content=""><title>Fallback</title>'
    assert parse_tags(html)["title"] == "Fallback"


def test_property_preferred_over_name():
    html = '<meta property="og:description" name="description" content="Both">'
    assert parse_tags(html) == {"description": "Both"}


def test_meta_without_key_or_content_is_skipped():
    html = """
    <meta charset="utf-8">
    <meta name="viewport">
    <meta content="orphan">
    <meta property="og:site_name" content="Example">
    """
    assert parse_tags(html) == {"site_name": "Example"}


def test_values_are_sanitized_and_decoded():
    html = '<meta property="og:title" content="  Fish &amp;amp; Chips\n\t&lt;b&gt;today&lt;/b&gt; ">'
    assert parse_tags(html)["title"] == "Fish & Chips today"


def test_malformed_markup_does_not_raise():
    html = "<html><head><meta property='og:title' content='Broken'<title>x</head"
    tags = parse_tags(html)
    assert isinstance(tags, dict)


def test_declared_charset_header_is_used():
    body = "<html><head><title>Caf\xe9</title></head></html>".encode("latin-1")
    session = FakeSession(
        {PAGE_URL: FakeResponse(body, headers={"Content-Type": "text/html; charset=ISO-8859-1"})}
    )
    assert MetadataFetcher(ParserConfig(), session).fetch(PAGE_URL) == {"title": "Café"}


def test_charset_declared_in_markup_is_used():
    body = (
        '<html><head><meta charset="iso-8859-1"><title>Na\xefve</title></head></html>'
    ).encode("latin-1")
    session = FakeSession({PAGE_URL: FakeResponse(body, headers={"Content-Type": "text/html"})})
    assert MetadataFetcher(ParserConfig(), session).fetch(PAGE_URL)["title"] == "Naïve"


def test_fetch_unreachable_url_returns_empty_map():
    session = FakeSession({PAGE_URL: requests.ConnectionError("refused")})
    assert MetadataFetcher(ParserConfig(), session).fetch(PAGE_URL) == {}


def test_fetch_timeout_returns_empty_map():
    session = FakeSession({PAGE_URL: requests.Timeout("too slow")})
    assert MetadataFetcher(ParserConfig(), session).fetch(PAGE_URL) == {}


def test_fetch_error_status_returns_empty_map():
    page = '<meta property="og:title" content="Not Found">'
    session = FakeSession({PAGE_URL: FakeResponse(page, status_code=404)})
    assert MetadataFetcher(ParserConfig(), session).fetch(PAGE_URL) == {}


def test_fetch_empty_body_returns_empty_map():
    session = FakeSession({PAGE_URL: FakeResponse(b"")})
    assert MetadataFetcher(ParserConfig(), session).fetch(PAGE_URL) == {}


def test_fetch_sends_user_agent_cookies_and_timeout():
    config = ParserConfig(
        user_agent_filter=lambda default, url: f"{default} test/{url.rsplit('/', 1)[-1]}",
        cookies_filter=lambda url: {"consent": "yes"},
    )
    session = FakeSession({PAGE_URL: FakeResponse('<meta property="og:title" content="T">')})

    tags = MetadataFetcher(config, session).fetch(PAGE_URL)

    assert tags == {"title": "T"}
    call = session.calls[0]
    assert call["timeout"] == 11
    assert call["headers"]["User-Agent"].startswith("Mozilla/5.0")
    assert call["headers"]["User-Agent"].endswith("test/article")
    assert call["cookies"] == {"consent": "yes"}


def test_fetch_without_cookie_filter_sends_no_cookies():
    session = FakeSession({PAGE_URL: FakeResponse("<title>T</title>")})
    MetadataFetcher(ParserConfig(), session).fetch(PAGE_URL)
    assert session.calls[0]["cookies"] is None
