"""Shared fixtures: a local HTTP server serving a tiny site."""

from __future__ import annotations

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable

import pytest

from .fakes import html_page

Route = Callable[[BaseHTTPRequestHandler], None]


def _send(handler: BaseHTTPRequestHandler, status: int, content_type: str, body: bytes) -> None:
    handler.send_response(status)
    handler.send_header("Content-Type", content_type)
    handler.send_header("Content-Length", str(len(body)))
    handler.end_headers()
    handler.wfile.write(body)


DRIP_CHUNK = 64 * 1024
DRIP_CHUNKS = 40


def _default_routes(release: threading.Event) -> dict[str, Route]:
    def root(h: BaseHTTPRequestHandler) -> None:
        body = html_page("/a", "/b/", "/a#frag", "https://external.test/x", "mailto:me@x.test", "/doc.txt")
        _send(h, 200, "text/html; charset=utf-8", body.encode())

    def page_a(h: BaseHTTPRequestHandler) -> None:
        _send(h, 200, "text/html", html_page("/", "/b").encode())

    def page_b(h: BaseHTTPRequestHandler) -> None:
        _send(h, 200, "text/html", html_page("/missing").encode())

    def doc(h: BaseHTTPRequestHandler) -> None:
        _send(h, 200, "text/plain", b"plain text")

    def error(h: BaseHTTPRequestHandler) -> None:
        _send(h, 500, "text/html", b"<html>boom</html>")

    def redirect(h: BaseHTTPRequestHandler) -> None:
        h.send_response(302)
        h.send_header("Location", "/a")
        h.send_header("Content-Length", "0")
        h.end_headers()

    def slow(h: BaseHTTPRequestHandler) -> None:
        time.sleep(1.5)
        _send(h, 200, "text/html", b"<html></html>")

    def stall_index(h: BaseHTTPRequestHandler) -> None:
        _send(h, 200, "text/html", html_page("/stall/1", "/stall/2").encode())

    def stall(h: BaseHTTPRequestHandler) -> None:
        # Headers are withheld until teardown releases the handler.
        release.wait(timeout=20)
        try:
            _send(h, 200, "text/html", b"<html></html>")
        except OSError:
            pass

    def drip(h: BaseHTTPRequestHandler) -> None:
        h.send_response(200)
        h.send_header("Content-Type", "text/html")
        h.send_header("Content-Length", str(DRIP_CHUNK * DRIP_CHUNKS))
        h.end_headers()
        try:
            for _ in range(DRIP_CHUNKS):
                h.wfile.write(b" " * DRIP_CHUNK)
                h.wfile.flush()
                if release.wait(timeout=0.1):
                    return
        except OSError:
            pass

    return {
        "/": root,
        "/a": page_a,
        "/b": page_b,
        "/doc.txt": doc,
        "/error": error,
        "/redirect": redirect,
        "/slow": slow,
        "/stall": stall_index,
        "/stall/1": stall,
        "/stall/2": stall,
        "/drip": drip,
    }


class _Handler(BaseHTTPRequestHandler):
    routes: dict[str, Route] = {}

    def do_GET(self) -> None:  # noqa: N802
        route = self.routes.get(self.path)
        if route is None:
            _send(self, 404, "text/html", b"<html>not found</html>")
            return
        route(self)

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        return


@pytest.fixture
def local_site(monkeypatch: pytest.MonkeyPatch):
    """Serve a tiny site on 127.0.0.1 and yield its base URL (no trailing slash)."""

    for var in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")

    release = threading.Event()
    handler = type("SiteHandler", (_Handler,), {"routes": _default_routes(release)})
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        release.set()
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)
