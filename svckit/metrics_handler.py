"""Expose a metrics registry over HTTP."""

from __future__ import annotations

import flask

from .http_server import Server
from .metrics_registry import DEFAULT_REGISTRY, Registry

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def init_handler(app: flask.Flask, path: str, registry: Registry | None = None) -> flask.Flask:
    """Serve ``registry`` in text exposition format at GET ``path``."""
    source = registry if registry is not None else DEFAULT_REGISTRY

    def metrics_view() -> flask.Response:
        return flask.Response(source.expose_text(), mimetype=None, content_type=CONTENT_TYPE)

    app.add_url_rule(path, endpoint=f"svckit_metrics_{path}", view_func=metrics_view, methods=["GET"])
    return app


def new_metrics_server(
    app_name: str, port: str | int, path: str, registry: Registry | None = None
) -> Server:
    """Return a server that only exposes metrics at ``path``."""
    app = flask.Flask(app_name)
    init_handler(app, path, registry)
    return Server(app, port)