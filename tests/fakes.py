"""In-memory fake site used by engine and CLI tests."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field

from linkgraph.crawler import FetchResult


def html_page(*hrefs: str) -> str:
    anchors = "".join(f'<a href="{href}">link</a>' for href in hrefs)
    return f"<html><head><title>t</title></head><body>{anchors}</body></html>"


@dataclass
class FakePage:
    links: tuple[str, ...] = ()
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    error: str | None = None
    delay: float = 0.0
    gate: threading.Event | None = None
    on_fetch: threading.Event | None = None
    hang_until_cancelled: bool = False


@dataclass
class FakeSite:
    """In-memory `fetch` implementation keyed by normalized URL.

    Unknown URLs answer 404 with an HTML content type.
    """

    pages: dict[str, FakePage] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def fetch(self, url: str, *, cancel_event: threading.Event | None = None) -> FetchResult:
        with self._lock:
            self.calls.append(url)

        page = self.pages.get(url)
        if page is None:
            return FetchResult(url, url, 404, "text/html", None)

        if page.on_fetch is not None:
            page.on_fetch.set()
        if page.gate is not None:
            page.gate.wait(timeout=10)
        if page.hang_until_cancelled and cancel_event is not None:
            cancel_event.wait(timeout=10)
            return FetchResult(url, None, None, None, None, error="Cancelled: body download aborted")
        if page.delay:
            time.sleep(page.delay)

        if page.error is not None:
            return FetchResult(url, None, None, None, None, error=page.error)

        body = None
        if 200 <= page.status < 300 and "text/html" in page.content_type:
            body = html_page(*page.links).encode("utf-8")
        return FetchResult(url, url, page.status, page.content_type, body, elapsed_ms=1)

    def fetched(self) -> list[str]:
        with self._lock:
            return list(self.calls)
