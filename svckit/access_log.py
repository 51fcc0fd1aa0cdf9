"""One-line access logging for Flask applications."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass

import flask

_log = logging.getLogger("svckit.access")

_NS_PER_SECOND = 1_000_000_000


@dataclass
class LogParams:
    """What one access-log line describes; ``latency`` is in seconds."""

    client_ip: str
    method: str
    path: str
    proto: str
    status_code: int
    latency: float
    user_agent: str = ""
    error_message: str = ""


def _decimal(value: int, divisor: int) -> str:
    whole, frac = divmod(value, divisor)
    if not frac:
        return str(whole)
    digits = str(frac).rjust(len(str(divisor)) - 1, "0").rstrip("0")
    return f"{whole}.{digits}"


def _format_latency(seconds: float) -> str:
    ns = round(seconds * _NS_PER_SECOND)
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    ns = abs(ns)
    if ns < 1_000:
        return f"{sign}{ns}ns"
    if ns < 1_000_000:
        return f"{sign}{_decimal(ns, 1_000)}µs"
    if ns < _NS_PER_SECOND:
        return f"{sign}{_decimal(ns, 1_000_000)}ms"
    hours, rest = divmod(ns, 3600 * _NS_PER_SECOND)
    minutes, rest = divmod(rest, 60 * _NS_PER_SECOND)
    prefix = ""
    if hours:
        prefix = f"{hours}h{minutes}m"
    elif minutes:
        prefix = f"{minutes}m"
    return f"{sign}{prefix}{_decimal(rest, _NS_PER_SECOND)}s"


def format_log_line(params: LogParams) -> str:
    """Render ``params`` as one access-log line ending in a newline."""
    return (
        f'{params.client_ip} - "{params.method} {params.path} {params.proto} '
        f'{params.status_code} {_format_latency(params.latency)} '
        f'"{params.user_agent}" {params.error_message}"\n'
    )


def access_logger(app: flask.Flask, skip_paths: Iterable[str] = ()) -> flask.Flask:
    """Log one line per request of ``app`` except for paths in ``skip_paths``."""
    skipped = frozenset(skip_paths)
    state_key = f"_svckit_access_start_{id(app)}_{len(app.before_request_funcs.get(None, []))}"

    @app.before_request
    def _start_access_log() -> None:
        setattr(flask.g, state_key, time.monotonic())

    @app.after_request
    def _write_access_log(response: flask.Response) -> flask.Response:
        start = flask.g.pop(state_key, None)
        request = flask.request
        if start is None or request.path in skipped:
            return response
        query = request.query_string.decode("latin-1")
        params = LogParams(
            client_ip=request.remote_addr or "",
            method=request.method,
            path=f"{request.path}?{query}" if query else request.path,
            proto=request.environ.get("SERVER_PROTOCOL", ""),
            status_code=response.status_code,
            latency=time.monotonic() - start,
            user_agent=request.user_agent.string,
        )
        _log.info(format_log_line(params).rstrip("\n"))
        return response

    return app