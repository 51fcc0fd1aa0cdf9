"""Background workers that run a function at a fixed interval."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .metrics import NullPerformanceMetric

_log = logging.getLogger(__name__)

HOLD = -1
"""Interval value meaning: start the worker but never run its function."""

DEFAULT_INTERVAL = 60.0


@dataclass
class WorkerOptions:
    """How a worker is scheduled; ``interval`` is in seconds."""

    interval: float
    run_immediately: bool = True
    run_consequently: bool = False
    performance_metric: Any = field(default_factory=NullPerformanceMetric)


def default_worker_options(interval: float) -> WorkerOptions:
    """Options that run at once and then every ``interval`` seconds."""
    return WorkerOptions(interval=interval)


class Worker:
    """Runs ``worker_fn`` periodically on its own thread until stopped."""

    def __init__(
        self,
        name: str,
        worker_fn: Callable[[], Any],
        options: WorkerOptions | None = None,
        stop_fn: Callable[[], Any] | None = None,
    ) -> None:
        self.name = name
        self.worker_fn = worker_fn
        self.options = options if options is not None else default_worker_options(DEFAULT_INTERVAL)
        self.stop_fn = stop_fn

    def start(self, stop: threading.Event) -> threading.Thread:
        """Start the worker thread; it ends after ``stop`` is set."""
        interval = self.options.interval
        if interval == HOLD:
            target = self._hold
        elif interval <= 0:
            raise ValueError("worker interval must be positive")
        else:
            target = self._run
        thread = threading.Thread(
            target=target, args=(stop,), name=f"worker-{self.name}", daemon=True
        )
        thread.start()
        return thread

    def _run(self, stop: threading.Event) -> None:
        interval = self.options.interval
        next_tick = time.monotonic() + interval

        if self.options.run_immediately:
            _log.info("worker %s: run immediately", self.name)
            self._invoke()

        while not stop.wait(max(0.0, next_tick - time.monotonic())):
            _log.info("worker %s: processing", self.name)
            self._invoke()
            now = time.monotonic()
            if self.options.run_consequently:
                next_tick = now + interval
            else:
                next_tick += interval
                if next_tick <= now:
                    # one missed tick stays pending, the rest are dropped
                    next_tick += ((now - next_tick) // interval) * interval
        self._shutdown()

    def _hold(self, stop: threading.Event) -> None:
        _log.info("worker %s: started, but won't be executed", self.name)
        stop.wait()
        self._shutdown()

    def _shutdown(self) -> None:
        if self.stop_fn is not None:
            _log.info("worker %s: stopping...", self.name)
            try:
                self.stop_fn()
            except Exception:
                _log.warning(
                    "worker %s: error occurred while stopping the worker",
                    self.name, exc_info=True,
                )
        _log.info("worker %s: stopped", self.name)

    def _invoke(self) -> None:
        metric = self.options.performance_metric or NullPerformanceMetric()
        start = metric.start()
        try:
            self.worker_fn()
        except Exception:
            metric.failure()
            _log.exception("worker %s: run failed", self.name)
        else:
            metric.success()
        finally:
            metric.duration(start)


class WorkerBuilder:
    """Fluent construction of a ``Worker``."""

    def __init__(self, name: str, worker_fn: Callable[[], Any]) -> None:
        self._worker = Worker(name, worker_fn)

    def with_options(self, options: WorkerOptions) -> WorkerBuilder:
        self._worker.options = options
        return self

    def with_stop(self, stop_fn: Callable[[], Any]) -> WorkerBuilder:
        self._worker.stop_fn = stop_fn
        return self

    def build(self) -> Worker:
        return self._worker