import time

import pytest

from svckit.metrics import NullPerformanceMetric, PerformanceMetric
from svckit.metrics_registry import Registry


def _value(registry, name, labels):
    for family in registry.gather():
        for sample in family.samples:
            if sample.name == name and sample.labels == labels:
                return sample.value
    raise KeyError(name)


def test_success_counts_and_touches_failures():
    registry = Registry()
    metric = PerformanceMetric("", ["job"], registry=registry)
    runs = ["a", "b", "c"]
    for _ in runs:
        metric.success("sync")
    assert _value(registry, "execution_succeeded_total", {"job": "sync"}) == len(runs)
    assert _value(registry, "execution_failed_total", {"job": "sync"}) == 0


def test_failure_counts_and_touches_successes():
    registry = Registry()
    metric = PerformanceMetric("", ["job"], registry=registry)
    runs = ["a", "b"]
    for _ in runs:
        metric.failure("sync")
    assert _value(registry, "execution_failed_total", {"job": "sync"}) == len(runs)
    assert _value(registry, "execution_succeeded_total", {"job": "sync"}) == 0


def test_start_sets_gauge_to_wall_clock():
    registry = Registry()
    metric = PerformanceMetric("", ["job"], registry=registry)
    before = time.time()
    start = metric.start("sync")
    after = time.time()
    assert start <= time.monotonic()
    assert before <= _value(registry, "execution_started", {"job": "sync"}) <= after


def test_duration_observes_each_call():
    registry = Registry()
    metric = PerformanceMetric("", ["job"], registry=registry)
    starts = [metric.start("sync") for _ in range(3)]
    for start in starts:
        metric.duration(start, "sync")
    assert _value(registry, "execution_duration_seconds_count", {"job": "sync"}) == len(starts)
    assert _value(registry, "execution_duration_seconds_sum", {"job": "sync"}) >= 0


def test_namespace_and_static_labels():
    registry = Registry()
    metric = PerformanceMetric("svc", ["job"], {"app": "svc"}, registry)
    metric.success("sync")
    names = {f.name for f in registry.gather()}
    assert names == {"svc_execution_succeeded_total", "svc_execution_failed_total"}
    labels = {"app": "svc", "job": "sync"}
    assert _value(registry, "svc_execution_failed_total", labels) == 0


def test_second_metric_with_same_names_does_not_raise():
    registry = Registry()
    first = PerformanceMetric("", ["job"], registry=registry)
    PerformanceMetric("", ["job"], registry=registry)
    first.duration(first.start("sync"), "sync")
    first.success("sync")
    assert {f.name for f in registry.gather()} == {
        "execution_started",
        "execution_duration_seconds",
        "execution_succeeded_total",
        "execution_failed_total",
    }


def test_wrong_number_of_label_values_raises():
    metric = PerformanceMetric("", ["job", "kind"], registry=Registry())
    with pytest.raises(ValueError):
        metric.success("only-one")


def test_null_metric_start_is_zero():
    assert NullPerformanceMetric().start("anything") == 0.0