"""Run a WSGI application until told to stop."""

from __future__ import annotations

import logging
import os
import signal
import threading
from typing import Any

from werkzeug.serving import make_server

from .shutdown import _wait_for_signals

_log = logging.getLogger(__name__)

INITIALIZED_MARKER = "/tmp/app-initialized"


def _exit_signals() -> tuple[int, ...]:
    names = ("SIGHUP", "SIGINT", "SIGTERM", "SIGQUIT")
    return tuple(getattr(signal, name) for name in names if hasattr(signal, name))


class Server:
    """An HTTP server for a WSGI ``app`` bound to ``host:port``."""

    def __init__(self, app: Any, port: str | int, host: str = "0.0.0.0") -> None:
        self.app = app
        self.port = int(port)
        self.host = host or "0.0.0.0"
        self.bound_port: int | None = None

    def run(self, stop: threading.Event) -> threading.Thread:
        """Start serving in the background; the returned thread ends after ``stop`` is set."""
        server = make_server(self.host, self.port, self.app, threaded=True)
        self.bound_port = server.server_port
        serving = threading.Thread(target=server.serve_forever, name="http-serve", daemon=True)
        serving.start()
        _log.info("Starting the API server on %s:%s", self.host, self.bound_port)

        def supervise() -> None:
            while serving.is_alive():
                if stop.wait(0.1):
                    _log.info("Shutting down the server")
                    server.shutdown()
                    break
            serving.join()
            server.server_close()

        supervisor = threading.Thread(target=supervise, name="http-supervisor", daemon=True)
        supervisor.start()
        return supervisor


def serve_until_signal(app: Any, port: str | int) -> signal.Signals:
    """Serve ``app`` on ``port`` until an exit signal arrives; return that signal."""
    server = make_server("0.0.0.0", int(port), app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    _log.info("Running application on port %s", port)
    try:
        received = _wait_for_signals(_exit_signals())
        _log.info("Stop signal received %s", received.name)
        _log.info("Waiting for all jobs to stop")
    finally:
        server.shutdown()
        server.server_close()
    return received


def serve_unix_until_signal(app: Any, unix_file: str) -> signal.Signals:
    """Serve ``app`` on a unix socket until an exit signal arrives; return that signal."""
    with open(INITIALIZED_MARKER, "a", encoding="utf-8"):
        pass
    server = make_server(f"unix://{unix_file}", 0, app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    _log.debug("Listening and serving HTTP on unix:/%s", unix_file)
    try:
        received = _wait_for_signals(_exit_signals())
        _log.info("Stop signal received %s", received.name)
    finally:
        server.shutdown()
        server.server_close()
        try:
            os.remove(unix_file)
        except FileNotFoundError:
            pass
    return received