"""Thread-safe set of URLs already admitted to the frontier."""

from __future__ import annotations

import threading
from typing import Iterable, Iterator


class VisitedSet:
    """Set-based URL deduplication shared by all crawl workers.

    URLs are expected to be normalized already; the set does not canonicalize.
    Membership only grows.
    """

    def __init__(self, initial: Iterable[str] | None = None) -> None:
        self._lock = threading.Lock()
        self._urls: set[str] = set(initial or ())

    def add(self, url: str) -> bool:
        """Insert `url` and return True if it was not present before.

        Test and insert happen under one lock, so among concurrent callers
        carrying the same URL exactly one gets True.
        """

        with self._lock:
            if url in self._urls:
                return False
            self._urls.add(url)
            return True

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._urls

    def __len__(self) -> int:
        with self._lock:
            return len(self._urls)

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())

    def snapshot(self) -> set[str]:
        """Return a copy of the admitted URLs."""

        with self._lock:
            return set(self._urls)


__all__ = ["VisitedSet"]
