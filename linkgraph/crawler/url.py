"""URL normalization, href resolution, and scope filtering helpers."""

from __future__ import annotations

from typing import Sequence
from urllib.parse import SplitResult, urljoin, urlsplit, urlunsplit


DEFAULT_ALLOWED_SCHEMES = ("http", "https")
SKIP_HREF_PREFIXES = ("javascript:", "mailto:", "tel:")
DEFAULT_PORTS = {"http": 80, "https": 443}


def host_from_url(url: str) -> str:
    """Extract the lowercased host from a URL.

    Unlike domain matching in some crawlers, `www.` is kept: scope checks
    compare hosts exactly or by subdomain suffix.
    """

    try:
        parsed = urlsplit(url)
    except ValueError:
        return ""
    return (parsed.hostname or "").strip().lower()


def is_absolute_url(url: str) -> bool:
    """Return True if URL has both a scheme and a network location."""

    try:
        parsed = urlsplit(url)
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


def is_http_url(url: str, allowed_schemes: Sequence[str] = DEFAULT_ALLOWED_SCHEMES) -> bool:
    """Return True if URL is absolute and has an allowed HTTP-like scheme."""

    try:
        parsed = urlsplit(url)
        # Accessing `port` validates it; bad ports raise ValueError.
        parsed.port
    except ValueError:
        return False
    if not parsed.scheme or not parsed.hostname:
        return False
    return parsed.scheme.lower() in {scheme.lower() for scheme in allowed_schemes}


def _normalize_netloc(parsed_url: SplitResult) -> str:
    host = (parsed_url.hostname or "").lower()
    if not host:
        return parsed_url.netloc.lower()
    if ":" in host:
        host = f"[{host}]"

    userinfo = ""
    if parsed_url.username is not None:
        userinfo = parsed_url.username
        if parsed_url.password is not None:
            userinfo += ":" + parsed_url.password
        userinfo += "@"

    port = parsed_url.port
    if port is not None and DEFAULT_PORTS.get(parsed_url.scheme.lower()) != port:
        return f"{userinfo}{host}:{port}"
    return f"{userinfo}{host}"


def _normalize_path(path: str) -> str:
    if not path or path == "/":
        return "/"
    # Stripping every trailing slash keeps normalization idempotent for "/a//".
    return path.rstrip("/") or "/"


def normalize_url(url: str) -> str:
    """Canonicalize an absolute URL so equivalent pages compare equal.

    The fragment is dropped, the root path becomes `/` and any other path loses
    its trailing slash. Scheme and host are lowercased and default ports are
    removed; the query string is kept as-is.

    Raises `ValueError` when `url` is not absolute; callers resolving untrusted
    hrefs should go through `resolve_url`, which never raises.
    """

    raw = (url or "").strip()
    parsed = urlsplit(raw)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"Expected an absolute URL, got {url!r}")

    scheme = parsed.scheme.lower()
    netloc = _normalize_netloc(parsed)
    path = _normalize_path(parsed.path)
    return urlunsplit((scheme, netloc, path, parsed.query, ""))


def resolve_url(base_url: str, href: str | None) -> str | None:
    """Resolve a raw href against `base_url` and normalize the result.

    Returns `None` for hrefs that name no crawlable page (`mailto:`,
    `javascript:`, `tel:`, bare fragments) and for anything that fails to
    resolve to an absolute URL.
    """

    if href is None:
        return None

    candidate = href.strip()
    if not candidate or candidate.startswith("#"):
        return None

    lowered = candidate.lower()
    if lowered.startswith(SKIP_HREF_PREFIXES):
        return None

    try:
        absolute = urljoin(base_url, candidate)
        if not is_absolute_url(absolute):
            return None
        return normalize_url(absolute)
    except ValueError:
        return None


def is_url_in_scope(url: str, base_url: str) -> bool:
    """Return True when `url` uses HTTP(S) on the base host or one of its subdomains.

    The check only goes downward: with a base of `www.example.com`, the bare
    `example.com` is out of scope.
    """

    try:
        parsed = urlsplit(url)
    except ValueError:
        return False

    if parsed.scheme.lower() not in DEFAULT_ALLOWED_SCHEMES:
        return False

    target_host = host_from_url(url)
    base_host = host_from_url(base_url)
    if not target_host or not base_host:
        return False

    return target_host == base_host or target_host.endswith("." + base_host)


__all__ = [
    "DEFAULT_ALLOWED_SCHEMES",
    "DEFAULT_PORTS",
    "SKIP_HREF_PREFIXES",
    "host_from_url",
    "is_absolute_url",
    "is_http_url",
    "is_url_in_scope",
    "normalize_url",
    "resolve_url",
]
