"""Thread-safe crawl statistics aggregation utilities."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
import threading
from typing import Any, Mapping

from .frontier import EnqueueResult, EnqueueStatus
from .types import CrawlStage, FetchResult, utc_now_iso


class StatsCollector:
    """Collect and summarize crawler runtime statistics.

    The collector is thread-safe and intended for use across concurrent
    crawl workers.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

        self._started_at = utc_now_iso()
        self._finished_at: str | None = None

        self._enqueue_status_counts: dict[str, int] = defaultdict(int)
        self._frontier_snapshot: dict[str, int | bool] = {}

        self._fetched_ok = 0
        self._fetched_error = 0
        self._skipped_non_html = 0
        self._fetch_status_code_counts: dict[str, int] = defaultdict(int)
        self._fetch_error_type_counts: dict[str, int] = defaultdict(int)
        self._fetch_content_type_counts: dict[str, int] = defaultdict(int)
        self._fetch_elapsed_ms_total = 0
        self._fetch_elapsed_samples = 0
        self._fetch_bytes_total = 0

        self._links_seen = 0
        self._links_unresolved = 0
        self._links_out_of_scope = 0
        self._edges_recorded = 0

        self._error_counts_by_stage: dict[str, int] = defaultdict(int)

    def record_enqueue(self, result_or_status: EnqueueResult | EnqueueStatus) -> None:
        """Record one frontier enqueue outcome."""

        if isinstance(result_or_status, EnqueueResult):
            status = result_or_status.status
        else:
            status = result_or_status

        with self._lock:
            self._enqueue_status_counts[status.value] += 1

    def record_frontier_snapshot(self, snapshot: Mapping[str, int | bool]) -> None:
        """Attach latest frontier snapshot for diagnostics."""

        with self._lock:
            self._frontier_snapshot = dict(snapshot)

    def record_fetch(self, result: FetchResult) -> None:
        """Record one fetch result."""

        with self._lock:
            if result.ok:
                self._fetched_ok += 1
            else:
                self._fetched_error += 1

            if result.error:
                err_type = result.error.split(":", maxsplit=1)[0].strip() or "Unknown"
                self._fetch_error_type_counts[err_type] += 1

            if result.status_code is not None:
                self._fetch_status_code_counts[str(result.status_code)] += 1

            if result.content_type:
                media = result.content_type.split(";", maxsplit=1)[0].strip().lower()
                self._fetch_content_type_counts[media or "unknown"] += 1

            if result.elapsed_ms is not None:
                self._fetch_elapsed_ms_total += int(result.elapsed_ms)
                self._fetch_elapsed_samples += 1

            if result.content_length is not None:
                self._fetch_bytes_total += int(result.content_length)

    def record_skipped_non_html(self) -> None:
        with self._lock:
            self._skipped_non_html += 1

    def record_links(
        self,
        *,
        seen: int = 0,
        unresolved: int = 0,
        out_of_scope: int = 0,
        edges: int = 0,
    ) -> None:
        """Record link handling counts for one page."""

        with self._lock:
            self._links_seen += seen
            self._links_unresolved += unresolved
            self._links_out_of_scope += out_of_scope
            self._edges_recorded += edges

    def record_error(self, stage: CrawlStage) -> None:
        """Record one per-URL failure at `stage`."""

        with self._lock:
            self._error_counts_by_stage[stage.value] += 1

    def finish(self) -> None:
        """Mark crawl as finished."""

        with self._lock:
            self._finished_at = utc_now_iso()

    def to_json(self) -> dict[str, Any]:
        """Return a JSON-serializable summary payload."""

        with self._lock:
            start = _parse_iso_utc(self._started_at)
            end = _parse_iso_utc(self._finished_at) if self._finished_at else datetime.now(
                timezone.utc
            )
            duration_seconds = max(0.0, (end - start).total_seconds())

            fetch_elapsed_avg = (
                self._fetch_elapsed_ms_total / self._fetch_elapsed_samples
                if self._fetch_elapsed_samples > 0
                else 0.0
            )
            fetched_total = self._fetched_ok + self._fetched_error

            return {
                "started_at": self._started_at,
                "finished_at": self._finished_at,
                "duration_seconds": duration_seconds,
                "frontier_admitted": self._enqueue_status_counts.get(
                    EnqueueStatus.ADMITTED.value, 0
                ),
                "frontier_skipped_seen": self._enqueue_status_counts.get(
                    EnqueueStatus.SKIPPED_SEEN.value, 0
                ),
                "frontier_rejected_closed": self._enqueue_status_counts.get(
                    EnqueueStatus.REJECTED_CLOSED.value, 0
                ),
                "fetched_ok": self._fetched_ok,
                "fetched_error": self._fetched_error,
                "skipped_non_html": self._skipped_non_html,
                "edges_recorded": self._edges_recorded,
                "throughput": {
                    "fetched_per_second": (
                        fetched_total / duration_seconds if duration_seconds > 0 else 0.0
                    ),
                },
                "frontier": {
                    "snapshot": dict(self._frontier_snapshot),
                },
                "fetch": {
                    "status_code_counts": dict(self._fetch_status_code_counts),
                    "error_type_counts": dict(self._fetch_error_type_counts),
                    "content_type_counts": dict(self._fetch_content_type_counts),
                    "elapsed_ms_total": self._fetch_elapsed_ms_total,
                    "elapsed_ms_samples": self._fetch_elapsed_samples,
                    "elapsed_ms_avg": fetch_elapsed_avg,
                    "bytes_total": self._fetch_bytes_total,
                },
                "links": {
                    "seen": self._links_seen,
                    "unresolved": self._links_unresolved,
                    "out_of_scope": self._links_out_of_scope,
                },
                "errors_by_stage": dict(self._error_counts_by_stage),
            }


def _parse_iso_utc(value: str | None) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return datetime.now(timezone.utc)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


__all__ = ["StatsCollector"]
