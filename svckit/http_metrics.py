"""HTTP request metrics: start time, duration and outcome by status class."""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence

from .metrics_registry import (
    DEFAULT_REGISTRY,
    CounterVec,
    GaugeVec,
    HistogramVec,
    Registry,
    register,
)

REQUEST_STARTED_KEY = "request_started"
REQUEST_DURATION_SECONDS_KEY = "request_duration_seconds"
REQUEST_SUCCEEDED_TOTAL_KEY = "request_succeeded_total"
REQUEST_CLIENT_ERR_TOTAL_KEY = "request_client_error_total"
REQUEST_SERVER_ERR_TOTAL_KEY = "request_server_error_total"


class HttpServerMetric:
    """Records HTTP requests into five collectors registered on a registry."""

    def __init__(
        self,
        namespace: str,
        label_names: Sequence[str],
        static_labels: Mapping[str, str] | None = None,
        registry: Registry | None = None,
    ) -> None:
        if registry is None:
            registry = DEFAULT_REGISTRY
        self.request_started = GaugeVec(
            REQUEST_STARTED_KEY, "Last Unix time when request started.",
            label_names, namespace,
        )
        self.request_duration_seconds = HistogramVec(
            REQUEST_DURATION_SECONDS_KEY, "Duration of the executions.",
            label_names, namespace,
        )
        self.request_succeeded_total = CounterVec(
            REQUEST_SUCCEEDED_TOTAL_KEY, "Total number of the 2xx requests which succeeded.",
            label_names, namespace,
        )
        self.request_client_err_total = CounterVec(
            REQUEST_CLIENT_ERR_TOTAL_KEY, "Total number of the 4xx requests.",
            label_names, namespace,
        )
        self.request_server_err_total = CounterVec(
            REQUEST_SERVER_ERR_TOTAL_KEY, "Total number of the 5xx requests.",
            label_names, namespace,
        )
        register(
            static_labels, registry,
            self.request_started, self.request_duration_seconds,
            self.request_succeeded_total, self.request_client_err_total,
            self.request_server_err_total,
        )

    def start(self, *args: str) -> float:
        """Mark the start time and return a monotonic timestamp for ``duration``."""
        start = time.monotonic()
        self.request_started.labels(*args).set_to_current_time()
        return start

    def duration(self, start: float, *args: str) -> None:
        """Observe the seconds elapsed since ``start``."""
        self.request_duration_seconds.labels(*args).observe(time.monotonic() - start)

    def success(self, *args: str) -> None:
        """Count a 2xx response."""
        self.request_succeeded_total.labels(*args).inc()
        self.request_server_err_total.labels(*args).add(0)
        self.request_client_err_total.labels(*args).add(0)

    def server_error(self, *args: str) -> None:
        """Count a 5xx response."""
        self.request_succeeded_total.labels(*args).add(0)
        self.request_server_err_total.labels(*args).inc()
        self.request_client_err_total.labels(*args).add(0)

    def client_error(self, *args: str) -> None:
        """Count a 4xx response."""
        self.request_succeeded_total.labels(*args).add(0)
        self.request_server_err_total.labels(*args).add(0)
        self.request_client_err_total.labels(*args).inc()