import threading

import pytest

from agentforge.metrics import (
    RequestMetrics,
    RequestMetricsSnapshot,
    observe_request_metrics,
    reset_request_metrics,
    snapshot_request_metrics,
)


def test_observe_counts_each_status_class():
    metrics = RequestMetrics()
    observations = [(200, 5), (404, 7), (503, 3), (101, 1), (302, 0)]
    for status, latency in observations:
        metrics.observe(status, latency)

    snap = metrics.snapshot()
    assert snap.requests_total == len(observations)
    assert snap.latency_ms_total == sum(latency for _, latency in observations)
    assert snap.status_1xx == 1
    assert snap.status_2xx == 1
    assert snap.status_3xx == 1
    assert snap.status_4xx == 1
    assert snap.status_5xx == 1
    assert snap.errors_5xx_total == snap.status_5xx


@pytest.mark.parametrize(
    "status, field",
    [
        (100, "status_1xx"),
        (199, "status_1xx"),
        (200, "status_2xx"),
        (299, "status_2xx"),
        (300, "status_3xx"),
        (399, "status_3xx"),
        (400, "status_4xx"),
        (499, "status_4xx"),
        (500, "status_5xx"),
        (599, "status_5xx"),
    ],
)
def test_status_class_boundaries(status, field):
    metrics = RequestMetrics()
    metrics.observe(status, 0)
    snap = metrics.snapshot()
    assert getattr(snap, field) == 1
    classes = ["status_1xx", "status_2xx", "status_3xx", "status_4xx", "status_5xx"]
    assert sum(getattr(snap, name) for name in classes) == 1


def test_reset_zeroes_counters():
    metrics = RequestMetrics()
    metrics.observe(500, 12)
    metrics.observe(201, 4)
    metrics.reset()
    assert metrics.snapshot() == RequestMetricsSnapshot()


def test_snapshot_is_not_affected_by_later_observations():
    metrics = RequestMetrics()
    metrics.observe(200, 1)
    before = metrics.snapshot()
    metrics.observe(200, 1)
    assert before.requests_total + 1 == metrics.snapshot().requests_total


def test_concurrent_observations_are_all_counted():
    metrics = RequestMetrics()
    threads_count, per_thread = 8, 100

    def work():
        for _ in range(per_thread):
            metrics.observe(204, 2)

    threads = [threading.Thread(target=work) for _ in range(threads_count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    snap = metrics.snapshot()
    assert snap.requests_total == threads_count * per_thread
    assert snap.status_2xx == threads_count * per_thread
    assert snap.latency_ms_total == threads_count * per_thread * 2


def test_global_functions_share_state():
    reset_request_metrics()
    try:
        observe_request_metrics(401, 9)
        snap = snapshot_request_metrics()
        assert snap.requests_total == 1
        assert snap.status_4xx == 1
        assert snap.latency_ms_total == 9
    finally:
        reset_request_metrics()
    assert snapshot_request_metrics() == RequestMetricsSnapshot()