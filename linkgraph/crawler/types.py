"""Core type definitions for the crawl engine.

This module is intentionally dependency-light so other crawler modules can import
shared records without introducing cycles.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Protocol, Sequence


class ContentKind(str, Enum):
    """Coarse content categories; only HTML is expanded for links."""

    HTML = "html"
    OTHER = "other"
    UNKNOWN = "unknown"


class CrawlStage(str, Enum):
    """Worker stage names for error reporting."""

    FETCH = "fetch"
    EXTRACT = "extract"
    PROCESS = "process"


class CrawlOutcome(str, Enum):
    """How a crawl run ended."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"


JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONDict = dict[str, JSONValue]


def utc_now_iso() -> str:
    """Return an RFC3339-like UTC timestamp string for stats payloads."""

    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def media_type(content_type: str | None) -> str:
    """Return the lowercased media type of a Content-Type header value."""

    return (content_type or "").split(";", maxsplit=1)[0].strip().lower()


def infer_content_kind(content_type: str | None) -> ContentKind:
    """Infer coarse content kind from an HTTP Content-Type header."""

    normalized = media_type(content_type)
    if "text/html" in normalized:
        return ContentKind.HTML
    if normalized:
        return ContentKind.OTHER
    return ContentKind.UNKNOWN


@dataclass(slots=True)
class FetchResult:
    """Result of attempting to download one URL."""

    requested_url: str
    final_url: str | None
    status_code: int | None
    content_type: str | None
    body: bytes | None
    elapsed_ms: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return (
            self.error is None
            and self.status_code is not None
            and 200 <= self.status_code < 300
        )

    @property
    def content_length(self) -> int | None:
        return None if self.body is None else len(self.body)

    @property
    def content_kind(self) -> ContentKind:
        return infer_content_kind(self.content_type)


@dataclass(frozen=True, slots=True)
class Edge:
    """One observed link: `source` page contained an in-scope link to `target`."""

    source: str
    target: str


@dataclass(slots=True)
class CrawlResult:
    """Summary returned by the engine once every worker has exited."""

    outcome: CrawlOutcome
    seed_url: str
    visited_count: int
    edge_count: int
    stats: JSONDict = field(default_factory=dict)

    @property
    def completed(self) -> bool:
        return self.outcome == CrawlOutcome.COMPLETED

    def to_json(self) -> JSONDict:
        return {
            "outcome": self.outcome.value,
            "seed_url": self.seed_url,
            "visited_count": self.visited_count,
            "edge_count": self.edge_count,
            "stats": self.stats,
        }


class PageFetcher(Protocol):
    def fetch(self, url: str, *, cancel_event: threading.Event | None = None) -> FetchResult:
        ...


class LinkExtractor(Protocol):
    def extract_links(self, html: str | bytes) -> Sequence[str]:
        ...


class EdgeRecorder(Protocol):
    def record_edge(self, source: str, target: str) -> None:
        ...


__all__ = [
    "ContentKind",
    "CrawlOutcome",
    "CrawlResult",
    "CrawlStage",
    "Edge",
    "EdgeRecorder",
    "FetchResult",
    "JSONDict",
    "JSONPrimitive",
    "JSONValue",
    "LinkExtractor",
    "PageFetcher",
    "infer_content_kind",
    "media_type",
    "utc_now_iso",
]
