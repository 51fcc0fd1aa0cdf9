"""In-process metric collectors and a registry that gathers and exposes them."""

from __future__ import annotations

import bisect
import itertools
import logging
import math
import re
import threading
import time
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

_log = logging.getLogger(__name__)

_METRIC_NAME_RE = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")
_LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

DEFAULT_BUCKETS: tuple[float, ...] = (
    0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0,
)


class AlreadyRegisteredError(ValueError):
    """Raised when an equal collector is already registered."""

    def __init__(self, existing: _MetricVec) -> None:
        super().__init__(
            f"duplicate metrics collector registration attempted: {existing.fq_name}"
        )
        self.existing = existing


@dataclass
class Sample:
    """One exposed value of a metric."""

    name: str
    labels: dict[str, str]
    value: float


@dataclass
class MetricFamily:
    """All samples that share one metric name."""

    name: str
    help: str
    type: str
    samples: list[Sample] = field(default_factory=list)


def _full_name(namespace: str, name: str) -> str:
    return f"{namespace}_{name}" if namespace else name


def _check_label_name(name: str) -> None:
    if not _LABEL_NAME_RE.match(name) or name.startswith("__"):
        raise ValueError(f"invalid label name: {name!r}")


def _format_value(value: float) -> str:
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def _escape_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def _render_labels(labels: Mapping[str, str]) -> str:
    if not labels:
        return ""
    body = ",".join(f'{k}="{_escape_label_value(v)}"' for k, v in labels.items())
    return "{" + body + "}"


class _Counter:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0.0

    def inc(self) -> None:
        self.add(1.0)

    def add(self, amount: float) -> None:
        if amount < 0:
            raise ValueError("counter cannot decrease in value")
        with self._lock:
            self._value += amount

    @property
    def value(self) -> float:
        with self._lock:
            return self._value

    def _samples(self) -> Iterator[tuple[str, dict[str, str], float]]:
        yield "", {}, self.value


class _Gauge:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0.0

    def set(self, value: float) -> None:
        with self._lock:
            self._value = float(value)

    def add(self, amount: float) -> None:
        with self._lock:
            self._value += amount

    def inc(self) -> None:
        self.add(1.0)

    def dec(self) -> None:
        self.add(-1.0)

    def set_to_current_time(self) -> None:
        self.set(time.time())

    @property
    def value(self) -> float:
        with self._lock:
            return self._value

    def _samples(self) -> Iterator[tuple[str, dict[str, str], float]]:
        yield "", {}, self.value


class _Histogram:
    def __init__(self, upper_bounds: tuple[float, ...]) -> None:
        self._lock = threading.Lock()
        self._upper_bounds = upper_bounds
        self._counts = [0] * len(upper_bounds)
        self._sum = 0.0
        self._count = 0

    def observe(self, value: float) -> None:
        index = bisect.bisect_left(self._upper_bounds, value)
        with self._lock:
            if index < len(self._counts):
                self._counts[index] += 1
            self._sum += value
            self._count += 1

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    @property
    def sum(self) -> float:
        with self._lock:
            return self._sum

    @property
    def buckets(self) -> list[tuple[float, int]]:
        """Cumulative counts per upper bound."""
        with self._lock:
            counts = list(self._counts)
        return list(zip(self._upper_bounds, itertools.accumulate(counts)))

    def _samples(self) -> Iterator[tuple[str, dict[str, str], float]]:
        with self._lock:
            counts = list(self._counts)
            total, count = self._sum, self._count
        for bound, cumulative in zip(self._upper_bounds, itertools.accumulate(counts)):
            yield "_bucket", {"le": _format_value(bound)}, float(cumulative)
        yield "_sum", {}, total
        yield "_count", {}, float(count)


class _MetricVec:
    type_name = "untyped"

    def __init__(
        self,
        name: str,
        help: str,
        label_names: Sequence[str] | None = None,
        namespace: str = "",
    ) -> None:
        self.fq_name = _full_name(namespace, name)
        if not _METRIC_NAME_RE.match(self.fq_name):
            raise ValueError(f"invalid metric name: {self.fq_name!r}")
        self.help = help
        self.label_names: tuple[str, ...] = tuple(label_names or ())
        for label in self.label_names:
            _check_label_name(label)
        if len(set(self.label_names)) != len(self.label_names):
            raise ValueError(f"duplicate label names in {self.label_names!r}")
        self._lock = threading.Lock()
        self._children: dict[tuple[str, ...], Any] = {}

    def _new_child(self) -> Any:
        raise NotImplementedError

    def labels(self, *args: str) -> Any:
        """Return the child metric for the given label values."""
        if len(args) != len(self.label_names):
            raise ValueError(
                f"{self.fq_name}: expected {len(self.label_names)} label values, "
                f"got {len(args)}"
            )
        key = tuple(args)
        with self._lock:
            child = self._children.get(key)
            if child is None:
                child = self._children[key] = self._new_child()
            return child

    def _samples(self) -> Iterator[tuple[str, dict[str, str], float]]:
        with self._lock:
            children = list(self._children.items())
        for values, child in children:
            base = dict(zip(self.label_names, values))
            for suffix, extra, value in child._samples():
                yield self.fq_name + suffix, {**base, **extra}, value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.fq_name!r}, {list(self.label_names)!r})"


class CounterVec(_MetricVec):
    """A family of monotonically increasing counters."""

    type_name = "counter"

    def __init__(self, name, help, label_names=None, namespace=""):
        super().__init__(name, help, label_names, namespace)

    def labels(self, *args: str) -> _Counter:
        return super().labels(*args)

    def _new_child(self) -> _Counter:
        return _Counter()


class GaugeVec(_MetricVec):
    """A family of gauges whose values may go up and down."""

    type_name = "gauge"

    def __init__(self, name, help, label_names=None, namespace=""):
        super().__init__(name, help, label_names, namespace)

    def labels(self, *args: str) -> _Gauge:
        return super().labels(*args)

    def _new_child(self) -> _Gauge:
        return _Gauge()


class HistogramVec(_MetricVec):
    """A family of histograms with shared bucket bounds."""

    type_name = "histogram"

    def __init__(self, name, help, label_names=None, namespace="", buckets=None):
        super().__init__(name, help, label_names, namespace)
        if "le" in self.label_names:
            raise ValueError("'le' is reserved for histogram buckets")
        bounds = [float(b) for b in (buckets if buckets is not None else DEFAULT_BUCKETS)]
        if any(later <= earlier for earlier, later in zip(bounds, bounds[1:])):
            raise ValueError("histogram buckets must be strictly increasing")
        if not bounds or not math.isinf(bounds[-1]):
            bounds.append(math.inf)
        self.buckets: tuple[float, ...] = tuple(bounds)

    def labels(self, *args: str) -> _Histogram:
        return super().labels(*args)

    def _new_child(self) -> _Histogram:
        return _Histogram(self.buckets)


@dataclass
class _Registration:
    collector: _MetricVec
    const_labels: dict[str, str]

    @property
    def label_set(self) -> frozenset[str]:
        return frozenset(self.collector.label_names) | frozenset(self.const_labels)


class Registry:
    """Holds registered collectors and gathers their samples."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: list[_Registration] = []

    def register(self, collector: _MetricVec, const_labels: Mapping[str, str] | None = None) -> None:
        """Register ``collector`` with constant labels added to all its samples."""
        entry = _Registration(collector, dict(const_labels or {}))
        for name in entry.const_labels:
            _check_label_name(name)
            if name in collector.label_names:
                raise ValueError(f"label {name!r} is both constant and variable")
        with self._lock:
            for existing in self._entries:
                if existing.collector.fq_name != collector.fq_name:
                    continue
                if existing.const_labels == entry.const_labels:
                    raise AlreadyRegisteredError(existing.collector)
                if (
                    existing.collector.type_name != collector.type_name
                    or existing.collector.help != collector.help
                    or existing.label_set != entry.label_set
                ):
                    raise ValueError(
                        f"a collector named {collector.fq_name!r} is already registered "
                        "with a different type, help string or label names"
                    )
            self._entries.append(entry)

    def unregister(self, collector: _MetricVec) -> bool:
        """Remove every registration of ``collector``; return whether any existed."""
        with self._lock:
            before = len(self._entries)
            self._entries = [e for e in self._entries if e.collector is not collector]
            return len(self._entries) < before

    def gather(self) -> list[MetricFamily]:
        """Return the metric families with at least one sample, sorted by name."""
        with self._lock:
            entries = list(self._entries)
        families: dict[str, MetricFamily] = {}
        for entry in entries:
            collector = entry.collector
            samples = [
                Sample(name, {**entry.const_labels, **labels}, value)
                for name, labels, value in collector._samples()
            ]
            if not samples:
                continue
            family = families.setdefault(
                collector.fq_name,
                MetricFamily(collector.fq_name, collector.help, collector.type_name),
            )
            family.samples.extend(samples)
        return [families[name] for name in sorted(families)]

    def expose_text(self) -> str:
        """Render all samples in the plain-text exposition format."""
        lines: list[str] = []
        for family in self.gather():
            help_text = family.help.replace("\\", "\\\\").replace("\n", "\\n")
            lines.append(f"# HELP {family.name} {help_text}")
            lines.append(f"# TYPE {family.name} {family.type}")
            lines.extend(
                f"{s.name}{_render_labels(s.labels)} {_format_value(s.value)}"
                for s in family.samples
            )
        return "\n".join(lines) + "\n" if lines else ""


DEFAULT_REGISTRY = Registry()


def register(labels: Mapping[str, str] | None, registry: Registry, *args: _MetricVec) -> None:
    """Register collectors, ignoring ones already registered and logging other failures."""
    for collector in args:
        try:
            registry.register(collector, labels)
        except AlreadyRegisteredError:
            continue
        except ValueError as err:
            _log.error("failed to register job duration metrics: %s", err)