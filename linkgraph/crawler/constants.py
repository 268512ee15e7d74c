"""Shared defaults for crawler config, fetcher, frontier, and exports."""

from __future__ import annotations


DEFAULT_CONCURRENCY = 5
DEFAULT_FRONTIER_CAPACITY = 1000

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_REDIRECTS = 5
DEFAULT_USER_AGENT = "linkgraph/1.0"
DEFAULT_HTTP_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
}

# Streamed body reads check for cancellation between chunks.
FETCH_CHUNK_SIZE = 64 * 1024

# Upper bound on how long the engine waits for workers after cancellation.
CANCEL_JOIN_TIMEOUT_SECONDS = 5.0
WORKER_POLL_SECONDS = 0.1

SUPPORTED_EXPORT_FORMATS = ("json", "html", "csv")
SUPPORTED_CONFIG_SUFFIXES = (".json", ".yaml", ".yml")
JSON_INDENT = 2


__all__ = [
    "CANCEL_JOIN_TIMEOUT_SECONDS",
    "DEFAULT_CONCURRENCY",
    "DEFAULT_FRONTIER_CAPACITY",
    "DEFAULT_HTTP_HEADERS",
    "DEFAULT_MAX_REDIRECTS",
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_USER_AGENT",
    "FETCH_CHUNK_SIZE",
    "JSON_INDENT",
    "SUPPORTED_CONFIG_SUFFIXES",
    "SUPPORTED_EXPORT_FORMATS",
    "WORKER_POLL_SECONDS",
]
