"""Prometheus text export and readiness probing for the task API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from agentforge.metrics import RequestMetricsSnapshot

PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


@dataclass(frozen=True)
class RuntimeSnapshot:
    """Worker and recovery counters."""

    claim_conflicts: int = 0
    finalize_failures: int = 0
    stream_push_errors: int = 0
    recovery_runs: int = 0
    recovery_requeued: int = 0
    recovery_errors: int = 0


def _metric(lines: list[str], name: str, kind: str, help_text: str, value: str) -> None:
    lines.append(f"# HELP {name} {help_text}")
    lines.append(f"# TYPE {name} {kind}")
    lines.append(f"{name} {value}")


def render_prometheus_metrics(
    request_snapshot: RequestMetricsSnapshot, runtime_snapshot: RuntimeSnapshot
) -> str:
    """Render request and runtime counters in Prometheus text format."""
    req, rt = request_snapshot, runtime_snapshot
    lines: list[str] = []
    _metric(lines, "agentforge_http_requests_total", "counter",
            "Total HTTP requests processed by AuthMiddleware.", str(req.requests_total))
    _metric(lines, "agentforge_http_request_latency_ms_total", "counter",
            "Cumulative request latency in milliseconds.", str(req.latency_ms_total))

    avg = req.latency_ms_total / req.requests_total if req.requests_total > 0 else 0.0
    _metric(lines, "agentforge_http_request_latency_ms_avg", "gauge",
            "Average request latency in milliseconds.", f"{avg:.6f}")

    lines.append("# HELP agentforge_http_responses_total Total HTTP responses by status class.")
    lines.append("# TYPE agentforge_http_responses_total counter")
    for label, value in (
        ("1xx", req.status_1xx),
        ("2xx", req.status_2xx),
        ("3xx", req.status_3xx),
        ("4xx", req.status_4xx),
        ("5xx", req.status_5xx),
    ):
        lines.append(f'agentforge_http_responses_total{{code_class="{label}"}} {value}')

    _metric(lines, "agentforge_http_5xx_total", "counter",
            "Total HTTP 5xx responses.", str(req.errors_5xx_total))
    _metric(lines, "agentforge_claim_conflicts_total", "counter",
            "Total run claim conflicts in worker.", str(rt.claim_conflicts))
    _metric(lines, "agentforge_worker_finalize_failures_total", "counter",
            "Total worker finalize failures.", str(rt.finalize_failures))
    _metric(lines, "agentforge_stream_push_errors_total", "counter",
            "Total stream push errors.", str(rt.stream_push_errors))
    _metric(lines, "agentforge_recovery_runs_total", "counter",
            "Total stale-run recovery executions.", str(rt.recovery_runs))
    _metric(lines, "agentforge_recovery_requeued_total", "counter",
            "Total runs requeued by recovery.", str(rt.recovery_requeued))
    _metric(lines, "agentforge_recovery_errors_total", "counter",
            "Total recovery processing errors.", str(rt.recovery_errors))
    return "\n".join(lines) + "\n"


def _probe(component: Any) -> str | None:
    """Run the component's health_check, if it has one; return an error message on failure."""
    check = getattr(component, "health_check", None)
    if not callable(check):
        return None
    try:
        check()
    except Exception as exc:  # any failure marks the component unhealthy
        return str(exc)
    return None


def build_readiness_response(store: Any, queue: Any) -> tuple[int, dict[str, Any]]:
    """Probe the state store and queue; return (HTTP status, response body)."""
    checks = {"state": "ok", "queue": "ok"}
    errors: dict[str, str] = {}
    for name, component in (("state", store), ("queue", queue)):
        error = _probe(component)
        if error is not None:
            checks[name] = "error"
            errors[name] = error

    if errors:
        return 503, {"status": "not_ready", "checks": checks, "errors": errors}
    return 200, {"status": "ready", "checks": checks}