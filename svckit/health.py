"""A small HTTP server answering health and readiness checks."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import urlsplit

_log = logging.getLogger(__name__)

DEFAULT_HEALTH_CHECK_ROUTE = "/health"
DEFAULT_READINESS_CHECK_ROUTE = "/ready"
DEFAULT_PORT = 4444

CheckFunc = Callable[[], Any]


class _HealthServer(ThreadingHTTPServer):
    allow_reuse_address = True
    daemon_threads = True


def _make_handler(routes: dict[str, Sequence[CheckFunc]]) -> type[BaseHTTPRequestHandler]:
    class Handler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:
            checks = routes.get(urlsplit(self.path).path)
            if checks is None:
                self._reply(404, "404 page not found\n")
                return
            for check in checks:
                try:
                    check()
                except Exception as err:
                    self._reply(500, f"{err}\n")
                    return
            self._reply(200, "")

        do_HEAD = do_GET
        do_POST = do_GET

        def _reply(self, status: int, body: str) -> None:
            data = body.encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "text/plain; charset=utf-8")
            self.send_header("Content-Length", str(len(data)))
            self.end_headers()
            if self.command != "HEAD":
                self.wfile.write(data)

        def log_message(self, format: str, *args: Any) -> None:
            _log.debug("health: " + format, *args)

    return Handler


def start_health_check_server(
    stop: threading.Event,
    health_check_route: str = DEFAULT_HEALTH_CHECK_ROUTE,
    readiness_check_route: str = DEFAULT_READINESS_CHECK_ROUTE,
    port: int = DEFAULT_PORT,
    health_checks: Iterable[CheckFunc] = (),
    readiness_checks: Iterable[CheckFunc] = (),
) -> None:
    """Serve the check routes until ``stop`` is set.

    A route answers 200 when all its checks return, or 500 with the message of
    the first check that raises. Binding errors are raised.
    """
    routes = {
        health_check_route: list(health_checks),
        readiness_check_route: list(readiness_checks),
    }
    server = _HealthServer(("", port), _make_handler(routes))

    def watch() -> None:
        stop.wait()
        server.shutdown()

    threading.Thread(target=watch, name="health-shutdown", daemon=True).start()
    try:
        server.serve_forever(poll_interval=0.05)
    finally:
        server.server_close()
        _log.info("health check server closed")