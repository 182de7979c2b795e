"""Process-wide HTTP request counters."""

from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class RequestMetricsSnapshot:
    """Point-in-time view of request counters."""

    requests_total: int = 0
    latency_ms_total: int = 0
    status_1xx: int = 0
    status_2xx: int = 0
    status_3xx: int = 0
    status_4xx: int = 0
    status_5xx: int = 0
    errors_5xx_total: int = 0


class RequestMetrics:
    """Thread-safe request counters grouped by status class."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot = RequestMetricsSnapshot()

    def observe(self, status: int, latency_ms: int) -> None:
        """Record one finished request."""
        with self._lock:
            s = self._snapshot
            counts = {
                "requests_total": s.requests_total + 1,
                "latency_ms_total": s.latency_ms_total + latency_ms,
            }
            if status >= 500:
                counts["status_5xx"] = s.status_5xx + 1
                counts["errors_5xx_total"] = s.errors_5xx_total + 1
            elif status >= 400:
                counts["status_4xx"] = s.status_4xx + 1
            elif status >= 300:
                counts["status_3xx"] = s.status_3xx + 1
            elif status >= 200:
                counts["status_2xx"] = s.status_2xx + 1
            else:
                counts["status_1xx"] = s.status_1xx + 1
            self._snapshot = RequestMetricsSnapshot(**{**s.__dict__, **counts})

    def snapshot(self) -> RequestMetricsSnapshot:
        """Return the current counters."""
        with self._lock:
            return self._snapshot

    def reset(self) -> None:
        """Zero every counter."""
        with self._lock:
            self._snapshot = RequestMetricsSnapshot()


_GLOBAL = RequestMetrics()


def observe_request_metrics(status: int, latency_ms: int) -> None:
    """Record one request in the process-wide counters."""
    _GLOBAL.observe(status, latency_ms)


def snapshot_request_metrics() -> RequestMetricsSnapshot:
    """Return the process-wide counters."""
    return _GLOBAL.snapshot()


def reset_request_metrics() -> None:
    """Zero the process-wide counters."""
    _GLOBAL.reset()