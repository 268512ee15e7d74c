"""HTTP page fetching on `requests` with timeouts and cooperative cancellation."""

from __future__ import annotations

import logging
import socket
import threading
import time
import weakref

import requests
from requests.adapters import HTTPAdapter
from urllib3.connectionpool import HTTPConnectionPool, HTTPSConnectionPool

from .config import CrawlConfig
from .constants import FETCH_CHUNK_SIZE
from .types import ContentKind, FetchResult, infer_content_kind

logger = logging.getLogger(__name__)


class _ConnectionTracker:
    """Connections currently checked out of a pool by an in-progress request."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active: weakref.WeakSet = weakref.WeakSet()

    def add(self, conn) -> None:
        with self._lock:
            self._active.add(conn)

    def discard(self, conn) -> None:
        with self._lock:
            self._active.discard(conn)

    def abort_all(self) -> int:
        """Shut down every live socket so blocked reads return immediately."""

        with self._lock:
            conns = list(self._active)

        aborted = 0
        for conn in conns:
            sock = getattr(conn, "sock", None)
            if sock is None:
                continue
            try:
                sock.shutdown(socket.SHUT_RDWR)
                aborted += 1
            except OSError:
                logger.debug("Socket already closed during abort", exc_info=True)
        return aborted


def _tracked_pool(
    base: type[HTTPConnectionPool],
    tracker: _ConnectionTracker,
) -> type[HTTPConnectionPool]:
    class TrackedPool(base):  # type: ignore[valid-type, misc]
        def _get_conn(self, timeout=None):
            conn = super()._get_conn(timeout)
            tracker.add(conn)
            return conn

        def _put_conn(self, conn) -> None:
            if conn is not None:
                tracker.discard(conn)
            super()._put_conn(conn)

    TrackedPool.__name__ = f"Tracked{base.__name__}"
    return TrackedPool


class _AbortableAdapter(HTTPAdapter):
    """`HTTPAdapter` whose pools report in-use connections to a tracker."""

    def __init__(self, tracker: _ConnectionTracker, **kwargs) -> None:
        # HTTPAdapter.__init__ calls init_poolmanager, which needs the tracker.
        self._tracker = tracker
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs) -> None:
        super().init_poolmanager(*args, **kwargs)
        self.poolmanager.pool_classes_by_scheme = {
            "http": _tracked_pool(HTTPConnectionPool, self._tracker),
            "https": _tracked_pool(HTTPSConnectionPool, self._tracker),
        }


class Fetcher:
    """Fetch URLs with one `requests.Session` per worker thread.

    Bodies are streamed so a set `cancel_event` aborts the download between
    chunks. `close` also shuts down the sockets of requests still waiting on
    the server, so no worker stays blocked in a read after cancellation.
    Bodies of non-HTML or non-2xx responses are never downloaded:
    the engine only needs the status and the declared content type for those.

    `fetch` never raises for transport failures; they are reported through
    `FetchResult.error` as `"<ExceptionClass>: <message>"`.
    """

    def __init__(self, config: CrawlConfig) -> None:
        self.config = config

        self._thread_local = threading.local()
        self._sessions_lock = threading.Lock()
        self._sessions: list[requests.Session] = []

        self._closed = False
        self._closed_lock = threading.Lock()
        self._connections = _ConnectionTracker()

    def fetch(self, url: str, *, cancel_event: threading.Event | None = None) -> FetchResult:
        """Fetch one URL and return its status, content type and HTML body."""

        if self._is_closed():
            return self._failed(url, "Fetcher is closed")
        if cancel_event is not None and cancel_event.is_set():
            return self._failed(url, "Cancelled: fetch not started")

        started = time.perf_counter()
        session = self._thread_local_session()

        try:
            with session.get(
                url,
                headers=self.config.request_headers(),
                timeout=self.config.timeout_seconds,
                allow_redirects=True,
                stream=True,
            ) as response:
                content_type = response.headers.get("Content-Type")
                status_code = response.status_code
                final_url = response.url or url

                body: bytes | None = None
                if (
                    200 <= status_code < 300
                    and infer_content_kind(content_type) == ContentKind.HTML
                ):
                    body = self._read_body(response, started=started, cancel_event=cancel_event)

                return FetchResult(
                    requested_url=url,
                    final_url=final_url,
                    status_code=status_code,
                    content_type=content_type,
                    body=body,
                    elapsed_ms=_elapsed_ms(started),
                    error=None,
                )
        except _FetchAborted as exc:
            return self._failed(url, str(exc), started=started)
        except requests.RequestException as exc:
            if self._is_closed() or (cancel_event is not None and cancel_event.is_set()):
                return self._failed(url, "Cancelled: request aborted", started=started)
            return self._failed(url, f"{exc.__class__.__name__}: {exc}", started=started)

    def _read_body(
        self,
        response: requests.Response,
        *,
        started: float,
        cancel_event: threading.Event | None,
    ) -> bytes:
        chunks: list[bytes] = []
        for chunk in response.iter_content(chunk_size=FETCH_CHUNK_SIZE):
            if cancel_event is not None and cancel_event.is_set():
                raise _FetchAborted("Cancelled: body download aborted")
            if time.perf_counter() - started > self.config.timeout_seconds:
                raise _FetchAborted(
                    f"Timeout: body not received within {self.config.timeout_seconds:g}s"
                )
            if chunk:
                chunks.append(chunk)
        return b"".join(chunks)

    def close(self) -> None:
        """Abort in-progress requests and close every session.

        Later `fetch` calls fail fast.
        """

        with self._closed_lock:
            self._closed = True

        aborted = self._connections.abort_all()
        if aborted:
            logger.debug("Aborted %d in-progress request(s)", aborted)

        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []

        for session in sessions:
            try:
                session.close()
            except Exception:
                logger.debug("Ignoring error while closing HTTP session", exc_info=True)

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _is_closed(self) -> bool:
        with self._closed_lock:
            return self._closed

    def _thread_local_session(self) -> requests.Session:
        session = getattr(self._thread_local, "session", None)
        if session is None:
            session = requests.Session()
            session.max_redirects = self.config.max_redirects
            adapter = _AbortableAdapter(self._connections)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
            self._thread_local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    @staticmethod
    def _failed(url: str, message: str, *, started: float | None = None) -> FetchResult:
        return FetchResult(
            requested_url=url,
            final_url=None,
            status_code=None,
            content_type=None,
            body=None,
            elapsed_ms=None if started is None else _elapsed_ms(started),
            error=message,
        )


class _FetchAborted(Exception):
    """Internal signal to stop reading a response body."""


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


__all__ = ["Fetcher"]
