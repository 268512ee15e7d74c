"""Bounded, closable frontier queue with dedup and termination detection."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum

from .constants import DEFAULT_FRONTIER_CAPACITY
from .dedup import VisitedSet
from .termination import WorkTracker

logger = logging.getLogger(__name__)


class EnqueueStatus(str, Enum):
    """Result status for frontier enqueue attempts."""

    ADMITTED = "admitted"
    SKIPPED_SEEN = "skipped_seen"
    REJECTED_CLOSED = "rejected_closed"


@dataclass(frozen=True, slots=True)
class EnqueueResult:
    """Outcome of one enqueue attempt."""

    status: EnqueueStatus
    url: str

    @property
    def accepted(self) -> bool:
        return self.status == EnqueueStatus.ADMITTED


class Frontier:
    """Frontier queue used by producer/consumer crawl workers.

    - `enqueue` admits each URL at most once (via `VisitedSet`) and blocks
      while the queue holds `capacity` items.
    - `dequeue` blocks until an item arrives or the frontier closes.
    - `task_done` must be called once per dequeued item. The frontier closes
      itself when no item is queued or being processed.

    One mutex guards the queue, the closed flag and the `WorkTracker`
    counters, so the exhaustion check and the close are a single step.

    When `worker_count` is given and every worker is blocked in `enqueue`, no
    consumer is left to free a slot. The last producer to arrive is then
    admitted over capacity instead of waiting forever. With `worker_count=1`
    that producer is always the last one, so every enqueue on a full queue
    goes over capacity and the bound does not limit memory at all.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_FRONTIER_CAPACITY,
        *,
        worker_count: int | None = None,
        visited: VisitedSet | None = None,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        if worker_count is not None and worker_count <= 0:
            raise ValueError("worker_count must be > 0 when set")

        self.capacity = capacity
        self.visited = visited if visited is not None else VisitedSet()
        self._worker_count = worker_count

        self._items: deque[str] = deque()
        self._mutex = threading.Lock()
        self._not_empty = threading.Condition(self._mutex)
        self._not_full = threading.Condition(self._mutex)
        self._tracker = WorkTracker()

        self._closed = False
        self._cancelled = False
        self._exhausted = False
        self._blocked_producers = 0

        self._admitted_count = 0
        self._skipped_seen_count = 0
        self._rejected_count = 0
        self._dequeued_count = 0
        self._discarded_count = 0
        self._overflow_count = 0
        self._high_water_mark = 0

    def enqueue(self, url: str) -> EnqueueResult:
        """Admit `url` if it was never seen, blocking while the queue is full.

        Returns `SKIPPED_SEEN` for known URLs and `REJECTED_CLOSED` when the
        frontier is (or becomes) closed before the URL could be queued.
        Neither is an error.
        """

        if not self.visited.add(url):
            with self._mutex:
                self._skipped_seen_count += 1
            return EnqueueResult(EnqueueStatus.SKIPPED_SEEN, url)

        with self._mutex:
            self._tracker.register()

            while not self._closed and len(self._items) >= self.capacity:
                if self._every_worker_blocked():
                    self._overflow_count += 1
                    logger.debug(
                        "All %d workers blocked on a full frontier; admitting %s over capacity",
                        self._worker_count,
                        url,
                    )
                    break

                self._blocked_producers += 1
                try:
                    self._not_full.wait()
                finally:
                    self._blocked_producers -= 1

            if self._closed:
                self._tracker.unregister()
                self._rejected_count += 1
                return EnqueueResult(EnqueueStatus.REJECTED_CLOSED, url)

            self._items.append(url)
            self._admitted_count += 1
            self._high_water_mark = max(self._high_water_mark, len(self._items))
            self._not_empty.notify()

        return EnqueueResult(EnqueueStatus.ADMITTED, url)

    def dequeue(self) -> str | None:
        """Pop one URL for a worker, or return `None` once the frontier is closed."""

        with self._mutex:
            while not self._items and not self._closed:
                self._not_empty.wait()

            if not self._items:
                return None

            url = self._items.popleft()
            self._tracker.start()
            self._dequeued_count += 1
            self._not_full.notify()
            return url

    def task_done(self) -> None:
        """Mark one dequeued URL as fully processed.

        Closes the frontier when this was the last piece of in-flight work.
        """

        with self._mutex:
            if self._tracker.finish() and not self._closed:
                logger.debug("Frontier exhausted after %d items; closing", self._dequeued_count)
                self._exhausted = True
                self._close_locked()

    def close(self) -> None:
        """Close the frontier; blocked producers are rejected, consumers drain."""

        with self._mutex:
            self._close_locked()

    def cancel(self) -> int:
        """Close the frontier and drop every pending item.

        Returns the number of discarded URLs. Blocked `enqueue` and `dequeue`
        calls return immediately. A frontier that already ran out of work stays
        completed and is not marked cancelled.
        """

        with self._mutex:
            if self._exhausted:
                return 0
            discarded = len(self._items)
            self._items.clear()
            self._tracker.unregister(discarded)
            self._discarded_count += discarded
            self._cancelled = True
            self._close_locked()
        return discarded

    def _close_locked(self) -> None:
        self._closed = True
        self._not_empty.notify_all()
        self._not_full.notify_all()

    def _every_worker_blocked(self) -> bool:
        if self._worker_count is None:
            return False
        # The caller is a worker about to block as well.
        return self._blocked_producers + 1 >= self._worker_count

    @property
    def closed(self) -> bool:
        """Whether the frontier has stopped accepting and handing out work."""

        with self._mutex:
            return self._closed

    @property
    def cancelled(self) -> bool:
        with self._mutex:
            return self._cancelled

    @property
    def exhausted(self) -> bool:
        """True once the frontier closed because all work was done."""

        with self._mutex:
            return self._exhausted

    def qsize(self) -> int:
        """Number of URLs currently waiting in the queue."""

        with self._mutex:
            return len(self._items)

    def empty(self) -> bool:
        with self._mutex:
            return not self._items

    def in_flight(self) -> int:
        """Queued plus actively processed items."""

        with self._mutex:
            return self._tracker.in_flight

    def snapshot(self) -> dict[str, int | bool]:
        """Return frontier counters for logs/stats reporting."""

        with self._mutex:
            return {
                "closed": self._closed,
                "cancelled": self._cancelled,
                "exhausted": self._exhausted,
                "capacity": self.capacity,
                "queue_size": len(self._items),
                "high_water_mark": self._high_water_mark,
                "visited_urls": len(self.visited),
                "admitted": self._admitted_count,
                "dequeued": self._dequeued_count,
                "skipped_seen": self._skipped_seen_count,
                "rejected_closed": self._rejected_count,
                "discarded": self._discarded_count,
                "over_capacity": self._overflow_count,
                **self._tracker.snapshot(),
            }


__all__ = [
    "EnqueueResult",
    "EnqueueStatus",
    "Frontier",
]
