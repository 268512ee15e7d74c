"""In-flight work accounting used to decide when a crawl is finished."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class WorkTracker:
    """Counts items waiting in the frontier and items held by workers.

    The tracker has no lock of its own. The owning `Frontier` calls every
    method while holding its condition lock, so a decrement and the
    "all work done" check that follows it are one atomic step.
    """

    queued: int = 0
    active: int = 0

    def register(self) -> None:
        """A URL was admitted and is on its way into the queue."""

        self.queued += 1

    def unregister(self, count: int = 1) -> None:
        """Admitted URLs that will never be dequeued (rejected or discarded)."""

        if count > self.queued:
            raise RuntimeError(
                f"Cannot unregister {count} item(s) with only {self.queued} queued"
            )
        self.queued -= count

    def start(self) -> None:
        """A worker took one queued item."""

        if self.queued <= 0:
            raise RuntimeError("Work started with no queued items")
        self.queued -= 1
        self.active += 1

    def finish(self) -> bool:
        """A worker is done with one item; return True if no work remains."""

        if self.active <= 0:
            raise RuntimeError("Work finished with no active items")
        self.active -= 1
        return self.exhausted

    @property
    def in_flight(self) -> int:
        return self.queued + self.active

    @property
    def exhausted(self) -> bool:
        return self.queued == 0 and self.active == 0

    def snapshot(self) -> dict[str, int]:
        return {"queued": self.queued, "active": self.active}


__all__ = ["WorkTracker"]
