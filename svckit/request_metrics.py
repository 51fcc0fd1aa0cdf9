"""Flask hooks that record per-route HTTP request metrics."""

from __future__ import annotations

from collections.abc import Mapping

import flask

from .http_metrics import HttpServerMetric
from .metrics_registry import Registry

LABEL_PATH = "path"
LABEL_METHOD = "method"


def metrics_middleware(
    app: flask.Flask,
    namespace: str,
    labels: Mapping[str, str] | None = None,
    registry: Registry | None = None,
) -> HttpServerMetric:
    """Record every routed request of ``app`` labelled by route rule and method.

    Requests that match no route are not recorded. Returns the metric used.
    """
    metric = HttpServerMetric(namespace, [LABEL_PATH, LABEL_METHOD], labels, registry)
    state_key = f"_svckit_request_metric_{id(metric)}"

    @app.before_request
    def _start_request_metric() -> None:
        rule = flask.request.url_rule
        if rule is None:
            return
        label_values = (rule.rule, flask.request.method)
        setattr(flask.g, state_key, (metric.start(*label_values), label_values))

    @app.after_request
    def _finish_request_metric(response: flask.Response) -> flask.Response:
        state = flask.g.pop(state_key, None)
        if state is None:
            return response
        start, label_values = state
        metric.duration(start, *label_values)
        status = response.status_code
        if 200 <= status <= 299:
            metric.success(*label_values)
        elif 500 <= status <= 599:
            metric.server_error(*label_values)
        elif 400 <= status <= 499:
            metric.client_error(*label_values)
        return response

    return metric