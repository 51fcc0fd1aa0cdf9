"""Execution metrics: start time, duration, successes and failures."""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from typing import Protocol

from .metrics_registry import (
    DEFAULT_REGISTRY,
    CounterVec,
    GaugeVec,
    HistogramVec,
    Registry,
    register,
)

EXECUTION_STARTED_KEY = "execution_started"
EXECUTION_DURATION_SECONDS_KEY = "execution_duration_seconds"
EXECUTION_SUCCEEDED_TOTAL_KEY = "execution_succeeded_total"
EXECUTION_FAILED_TOTAL_KEY = "execution_failed_total"


class PerformanceRecorder(Protocol):
    """Anything that records the outcome of an execution."""

    def start(self, *args: str) -> float: ...

    def duration(self, start: float, *args: str) -> None: ...

    def success(self, *args: str) -> None: ...

    def failure(self, *args: str) -> None: ...


class PerformanceMetric:
    """Records executions into four collectors registered on a registry."""

    def __init__(
        self,
        namespace: str,
        label_names: Sequence[str],
        static_labels: Mapping[str, str] | None = None,
        registry: Registry | None = None,
    ) -> None:
        if registry is None:
            registry = DEFAULT_REGISTRY
        self.execution_started = GaugeVec(
            EXECUTION_STARTED_KEY, "Last Unix time when execution started.",
            label_names, namespace,
        )
        self.execution_duration_seconds = HistogramVec(
            EXECUTION_DURATION_SECONDS_KEY, "Duration of the executions.",
            label_names, namespace,
        )
        self.execution_succeeded_total = CounterVec(
            EXECUTION_SUCCEEDED_TOTAL_KEY, "Total number of the executions which succeeded.",
            label_names, namespace,
        )
        self.execution_failed_total = CounterVec(
            EXECUTION_FAILED_TOTAL_KEY, "Total number of the executions which failed.",
            label_names, namespace,
        )
        register(
            static_labels, registry,
            self.execution_started, self.execution_duration_seconds,
            self.execution_succeeded_total, self.execution_failed_total,
        )

    def start(self, *args: str) -> float:
        """Mark the start time and return a monotonic timestamp for ``duration``."""
        start = time.monotonic()
        self.execution_started.labels(*args).set_to_current_time()
        return start

    def duration(self, start: float, *args: str) -> None:
        """Observe the seconds elapsed since ``start``."""
        self.execution_duration_seconds.labels(*args).observe(time.monotonic() - start)

    def success(self, *args: str) -> None:
        """Count a successful execution."""
        self.execution_succeeded_total.labels(*args).inc()
        self.execution_failed_total.labels(*args).add(0)

    def failure(self, *args: str) -> None:
        """Count a failed execution."""
        self.execution_failed_total.labels(*args).inc()
        self.execution_succeeded_total.labels(*args).add(0)


class NullPerformanceMetric:
    """A recorder that exports nothing to any registry; it keeps local tallies only."""

    def __init__(self) -> None:
        self.successes = 0
        self.failures = 0

    def start(self, *args: str) -> float:
        """Return a monotonic timestamp for ``duration``."""
        return time.monotonic()

    def duration(self, start: float, *args: str) -> float:
        """Return the seconds elapsed since ``start`` without recording them."""
        return max(0.0, time.monotonic() - start)

    def success(self, *args: str) -> None:
        """Tally a successful execution locally."""
        self.successes += 1

    def failure(self, *args: str) -> None:
        """Tally a failed execution locally."""
        self.failures += 1