"""Concurrent crawl engine: worker pool over a shared bounded frontier."""

from __future__ import annotations

import logging
import threading
import time
from typing import Sequence

from .config import CrawlConfig
from .constants import (
    CANCEL_JOIN_TIMEOUT_SECONDS,
    DEFAULT_CONCURRENCY,
    DEFAULT_FRONTIER_CAPACITY,
    WORKER_POLL_SECONDS,
)
from .fetcher import Fetcher
from .frontier import Frontier
from .parsers import HTMLLinkExtractor
from .sink import EdgeSink
from .stats import StatsCollector
from .types import (
    ContentKind,
    CrawlOutcome,
    CrawlResult,
    CrawlStage,
    EdgeRecorder,
    LinkExtractor,
    PageFetcher,
)
from .url import is_url_in_scope, normalize_url, resolve_url

logger = logging.getLogger(__name__)


class CrawlEngine:
    """Orchestrates frontier, fetcher, link extractor, edge sink, and stats.

    `run` starts `config.concurrency` worker threads that share one
    `Frontier`, and returns once every worker has exited: either the frontier
    ran out of work, or the crawl was cancelled through `cancel`, the
    `cancel_event`, or a `KeyboardInterrupt` in the calling thread.
    """

    def __init__(
        self,
        config: CrawlConfig,
        *,
        fetcher: PageFetcher | None = None,
        link_extractor: LinkExtractor | None = None,
        sink: EdgeRecorder | None = None,
        stats: StatsCollector | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.config = config

        self._owned_fetcher = Fetcher(config) if fetcher is None else None
        self.fetcher: PageFetcher = fetcher or self._owned_fetcher
        self.link_extractor = link_extractor or HTMLLinkExtractor()
        self.sink = sink if sink is not None else EdgeSink()
        self.stats = stats or StatsCollector()

        self._cancel_event = cancel_event if cancel_event is not None else threading.Event()
        self._base_url = config.seed_url

        self._state_lock = threading.Lock()
        self._frontier: Frontier | None = None
        self._started = False

    @property
    def frontier(self) -> Frontier | None:
        with self._state_lock:
            return self._frontier

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()

    def cancel(self) -> None:
        """Request cancellation; safe to call from any thread, any number of times."""

        self._cancel_event.set()
        self._propagate_cancel()

    def run(self) -> CrawlResult:
        """Crawl from the seed URL until the frontier drains or the crawl is cancelled."""

        with self._state_lock:
            if self._started:
                raise RuntimeError("CrawlEngine.run() can only be called once")
            self._started = True
            frontier = Frontier(
                self.config.frontier_capacity,
                worker_count=self.config.concurrency,
            )
            self._frontier = frontier

        seed_url = normalize_url(self.config.seed_url)
        logger.info(
            "Starting crawl: seed=%s, workers=%d, frontier_capacity=%d",
            seed_url,
            self.config.concurrency,
            self.config.frontier_capacity,
        )

        try:
            if self._cancel_event.is_set():
                self._propagate_cancel()
            else:
                self.stats.record_enqueue(frontier.enqueue(seed_url))

            workers = [
                threading.Thread(
                    target=self._frontier_worker,
                    args=(frontier,),
                    name=f"crawler-worker-{idx}",
                    daemon=True,
                )
                for idx in range(self.config.concurrency)
            ]

            for worker in workers:
                worker.start()

            try:
                self._wait_for_workers(workers)
            except KeyboardInterrupt:
                logger.warning("Interrupted; cancelling crawl")
                self.cancel()
                self._join_after_cancel(workers)
        finally:
            if self._owned_fetcher is not None:
                self._owned_fetcher.close()

        outcome = CrawlOutcome.CANCELLED if frontier.cancelled else CrawlOutcome.COMPLETED
        snapshot = frontier.snapshot()
        self.stats.record_frontier_snapshot(snapshot)
        self.stats.finish()
        summary = self.stats.to_json()

        logger.info(
            "Crawl %s: visited=%d, dequeued=%d, edges=%d",
            outcome.value,
            snapshot["visited_urls"],
            snapshot["dequeued"],
            summary["edges_recorded"],
        )

        return CrawlResult(
            outcome=outcome,
            seed_url=seed_url,
            visited_count=int(snapshot["visited_urls"]),
            edge_count=int(summary["edges_recorded"]),
            stats=summary,
        )

    def _wait_for_workers(self, workers: Sequence[threading.Thread]) -> None:
        # Joining with a timeout keeps the calling thread responsive to
        # KeyboardInterrupt and to an externally set cancel event.
        for worker in workers:
            while worker.is_alive():
                if self._cancel_event.is_set():
                    self._propagate_cancel()
                    self._join_after_cancel(workers)
                    return
                worker.join(timeout=WORKER_POLL_SECONDS)

    def _join_after_cancel(self, workers: Sequence[threading.Thread]) -> None:
        deadline = time.monotonic() + CANCEL_JOIN_TIMEOUT_SECONDS
        for worker in workers:
            worker.join(timeout=max(0.0, deadline - time.monotonic()))

        still_running = [worker.name for worker in workers if worker.is_alive()]
        if still_running:
            logger.warning(
                "%d worker(s) still busy %.1fs after cancellation; not waiting for: %s",
                len(still_running),
                CANCEL_JOIN_TIMEOUT_SECONDS,
                ", ".join(still_running),
            )

    def _propagate_cancel(self) -> None:
        frontier = self.frontier
        if frontier is not None and not frontier.closed:
            discarded = frontier.cancel()
            if frontier.cancelled:
                logger.info("Crawl cancelled; discarded %d queued URL(s)", discarded)
        if self._owned_fetcher is not None:
            self._owned_fetcher.close()

    def _frontier_worker(self, frontier: Frontier) -> None:
        while True:
            url = frontier.dequeue()
            if url is None:
                return

            try:
                if not self._cancel_event.is_set():
                    self._process_url(frontier, url)
            except Exception:
                logger.exception("Unexpected error processing %s", url)
                self.stats.record_error(CrawlStage.PROCESS)
            finally:
                # Cancel before finishing, or the last task_done could close
                # the frontier as exhausted.
                if self._cancel_event.is_set():
                    self._propagate_cancel()
                frontier.task_done()

    def _process_url(self, frontier: Frontier, url: str) -> None:
        fetch_result = self.fetcher.fetch(url, cancel_event=self._cancel_event)
        self.stats.record_fetch(fetch_result)

        if self._cancel_event.is_set():
            return

        if fetch_result.error is not None:
            logger.warning("Request failed for %s: %s", url, fetch_result.error)
            self.stats.record_error(CrawlStage.FETCH)
            return

        if fetch_result.content_kind != ContentKind.HTML:
            logger.info(
                "Skipping non-HTML content: %s (Content-Type: %s)",
                url,
                fetch_result.content_type or "",
            )
            self.stats.record_skipped_non_html()
            return

        if not fetch_result.ok:
            logger.warning("HTTP %s: %s", fetch_result.status_code, url)
            self.stats.record_error(CrawlStage.FETCH)
            return

        try:
            hrefs = self.link_extractor.extract_links(fetch_result.body or b"")
        except Exception as exc:
            logger.warning(
                "Failed to extract links from %s: %s: %s",
                url,
                exc.__class__.__name__,
                exc,
            )
            self.stats.record_error(CrawlStage.EXTRACT)
            return

        self._expand_links(frontier, url, hrefs)

    def _expand_links(self, frontier: Frontier, url: str, hrefs: Sequence[str]) -> None:
        unresolved = 0
        out_of_scope = 0
        edges = 0

        for href in hrefs:
            if self._cancel_event.is_set():
                break

            target = resolve_url(url, href)
            if target is None:
                unresolved += 1
                continue

            if not is_url_in_scope(target, self._base_url):
                out_of_scope += 1
                continue

            # Revisits are edges too; only the enqueue is deduplicated.
            self.sink.record_edge(url, target)
            edges += 1
            self.stats.record_enqueue(frontier.enqueue(target))

        self.stats.record_links(
            seen=len(hrefs),
            unresolved=unresolved,
            out_of_scope=out_of_scope,
            edges=edges,
        )
        logger.debug("Expanded %s: %d links, %d in-scope edges", url, len(hrefs), edges)


def crawl(
    seed_url: str,
    worker_count: int = DEFAULT_CONCURRENCY,
    *,
    frontier_capacity: int = DEFAULT_FRONTIER_CAPACITY,
    fetcher: PageFetcher | None = None,
    link_extractor: LinkExtractor | None = None,
    sink: EdgeRecorder | None = None,
    cancel_event: threading.Event | None = None,
) -> CrawlResult:
    """Crawl `seed_url` with `worker_count` workers and return when done.

    Raises `ValueError` before any work starts if the seed is not an absolute
    HTTP(S) URL or the counts are not positive.
    """

    config = CrawlConfig(
        seed_url=seed_url,
        concurrency=worker_count,
        frontier_capacity=frontier_capacity,
    )
    engine = CrawlEngine(
        config,
        fetcher=fetcher,
        link_extractor=link_extractor,
        sink=sink,
        cancel_event=cancel_event,
    )
    return engine.run()


__all__ = [
    "CrawlEngine",
    "crawl",
]
