from __future__ import annotations

import pytest

from linkgraph.crawler.url import (
    host_from_url,
    is_http_url,
    is_url_in_scope,
    normalize_url,
    resolve_url,
)


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://example.com", "https://example.com/"),
        ("https://example.com/", "https://example.com/"),
        ("https://example.com/page/", "https://example.com/page"),
        ("https://example.com/page#section", "https://example.com/page"),
        ("https://example.com/a/b//", "https://example.com/a/b"),
        ("HTTPS://Example.COM/Path", "https://example.com/Path"),
        ("http://example.com:80/x", "http://example.com/x"),
        ("https://example.com:443/x", "https://example.com/x"),
        ("https://example.com:8443/x", "https://example.com:8443/x"),
        ("https://example.com/search?q=1#top", "https://example.com/search?q=1"),
    ],
)
def test_normalize_url(url: str, expected: str) -> None:
    assert normalize_url(url) == expected


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com",
        "https://example.com/page/",
        "https://example.com/a/b//#frag",
        "HTTP://EXAMPLE.com:80/q?x=1",
    ],
)
def test_normalize_url_is_idempotent(url: str) -> None:
    once = normalize_url(url)
    assert normalize_url(once) == once


def test_equivalent_forms_normalize_to_same_url() -> None:
    forms = [
        "https://example.com/page#a",
        "https://example.com/page/",
        "https://example.com/page",
    ]
    assert {normalize_url(form) for form in forms} == {"https://example.com/page"}


@pytest.mark.parametrize("url", ["/relative/path", "example.com/page", ""])
def test_normalize_url_rejects_relative(url: str) -> None:
    with pytest.raises(ValueError):
        normalize_url(url)


@pytest.mark.parametrize(
    "href, expected",
    [
        ("/about", "https://example.com/about"),
        ("contact/", "https://example.com/docs/contact"),
        ("../up", "https://example.com/up"),
        ("https://example.com/x#frag", "https://example.com/x"),
        ("  /padded  ", "https://example.com/padded"),
        ("//example.com/proto-relative", "https://example.com/proto-relative"),
    ],
)
def test_resolve_url(href: str, expected: str) -> None:
    assert resolve_url("https://example.com/docs/index", href) == expected


@pytest.mark.parametrize(
    "href",
    [
        None,
        "",
        "   ",
        "#top",
        "javascript:void(0)",
        "JavaScript:alert(1)",
        "mailto:someone@example.com",
        "tel:+15551234",
        "http://[::1",
    ],
)
def test_resolve_url_skips_non_page_hrefs(href: str | None) -> None:
    assert resolve_url("https://example.com/", href) is None


@pytest.mark.parametrize(
    "url, base, expected",
    [
        ("https://example.com/page", "https://example.com", True),
        ("http://example.com/page", "https://example.com", True),
        ("https://blog.example.com/post", "https://example.com", True),
        ("https://a.b.example.com/", "https://example.com", True),
        ("https://other.com/", "https://example.com", False),
        ("https://notexample.com/", "https://example.com", False),
        ("https://example.com.evil.test/", "https://example.com", False),
        ("ftp://example.com/file", "https://example.com", False),
        ("https://EXAMPLE.com/x", "https://example.com", True),
        # Scope only extends downward from the seed host.
        ("https://example.com/", "https://www.example.com", False),
        ("https://www.example.com/", "https://example.com", True),
    ],
)
def test_is_url_in_scope(url: str, base: str, expected: bool) -> None:
    assert is_url_in_scope(url, base) is expected


def test_host_from_url_keeps_www() -> None:
    assert host_from_url("https://WWW.Example.com:8080/x") == "www.example.com"
    assert host_from_url("not a url") == ""


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://example.com", True),
        ("http://localhost:8000/x", True),
        ("ftp://example.com", False),
        ("example.com", False),
        ("https://", False),
        ("http://example.com:notaport/", False),
    ],
)
def test_is_http_url(url: str, expected: bool) -> None:
    assert is_http_url(url) is expected
