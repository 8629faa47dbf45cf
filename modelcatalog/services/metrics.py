"""
Lightweight Prometheus-compatible metrics collector.

Tracks request counts, response times, error rates and object store
reclamation outcomes.
"""

import time
from collections import defaultdict
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint


class MetricsCollector:
    """
    In-process metrics collector.

    Exposes its counters as a dict or in Prometheus text format.
    """

    def __init__(self) -> None:
        self._request_count: dict[str, int] = defaultdict(int)
        self._error_count: dict[str, int] = defaultdict(int)
        self._response_time_sum: dict[str, float] = defaultdict(float)
        self._response_time_count: dict[str, int] = defaultdict(int)
        self._status_counts: dict[int, int] = defaultdict(int)
        self._reclamations: dict[str, int] = defaultdict(int)
        self._reclamation_failures: dict[str, int] = defaultdict(int)
        self._start_time: float = time.time()

    def record_request(
        self,
        method: str,
        path: str,
        status_code: int,
        duration: float,
    ) -> None:
        """Record a completed request."""
        key = f"{method} {path}"
        self._request_count[key] += 1
        self._response_time_sum[key] += duration
        self._response_time_count[key] += 1
        self._status_counts[status_code] += 1

        if status_code >= 400:
            self._error_count[key] += 1

    def record_reclamation(self, reason: str, succeeded: bool) -> None:
        """Record one object store delete issued by the lifecycle orchestrator."""
        self._reclamations[reason] += 1
        if not succeeded:
            self._reclamation_failures[reason] += 1

    def get_metrics(self) -> dict[str, Any]:
        """Get metrics as a structured dictionary."""
        total_requests = sum(self._request_count.values())
        total_errors = sum(self._error_count.values())
        uptime = time.time() - self._start_time

        return {
            "uptime_seconds": round(uptime, 2),
            "total_requests": total_requests,
            "total_errors": total_errors,
            "error_rate": round(total_errors / total_requests, 4) if total_requests > 0 else 0,
            "requests_by_endpoint": dict(self._request_count),
            "errors_by_endpoint": dict(self._error_count),
            "status_code_counts": {str(k): v for k, v in sorted(self._status_counts.items())},
            "avg_response_time_ms": {
                k: round((self._response_time_sum[k] / self._response_time_count[k]) * 1000, 2)
                for k in self._response_time_count
            },
            "reclamations": {
                "attempted": dict(self._reclamations),
                "failed": dict(self._reclamation_failures),
            },
        }

    def to_prometheus(self) -> str:
        """
        Export metrics in Prometheus text exposition format.
        See: https://prometheus.io/docs/instrumenting/exposition_formats/
        """
        lines: list[str] = []
        uptime = time.time() - self._start_time

        lines.append("# HELP catalog_uptime_seconds Time since service start in seconds")
        lines.append("# TYPE catalog_uptime_seconds gauge")
        lines.append(f"catalog_uptime_seconds {uptime:.2f}")
        lines.append("")

        lines.append("# HELP catalog_http_requests_total Total HTTP requests")
        lines.append("# TYPE catalog_http_requests_total counter")
        for key, count in sorted(self._request_count.items()):
            method, path = key.split(" ", 1)
            lines.append(
                f'catalog_http_requests_total{{method="{method}",path="{path}"}} {count}'
            )
        lines.append("")

        lines.append("# HELP catalog_http_errors_total Total HTTP errors (4xx/5xx)")
        lines.append("# TYPE catalog_http_errors_total counter")
        for key, count in sorted(self._error_count.items()):
            method, path = key.split(" ", 1)
            lines.append(
                f'catalog_http_errors_total{{method="{method}",path="{path}"}} {count}'
            )
        lines.append("")

        lines.append("# HELP catalog_http_status_total HTTP responses by status code")
        lines.append("# TYPE catalog_http_status_total counter")
        for code, count in sorted(self._status_counts.items()):
            lines.append(f'catalog_http_status_total{{code="{code}"}} {count}')
        lines.append("")

        lines.append("# HELP catalog_http_response_time_seconds Average response time in seconds")
        lines.append("# TYPE catalog_http_response_time_seconds gauge")
        for key in sorted(self._response_time_count.keys()):
            method, path = key.split(" ", 1)
            avg = self._response_time_sum[key] / self._response_time_count[key]
            lines.append(
                f'catalog_http_response_time_seconds{{method="{method}",path="{path}"}} {avg:.6f}'
            )
        lines.append("")

        lines.append("# HELP catalog_reclamations_total Object store deletes issued for asset reclamation")
        lines.append("# TYPE catalog_reclamations_total counter")
        for reason, count in sorted(self._reclamations.items()):
            lines.append(f'catalog_reclamations_total{{reason="{reason}"}} {count}')
        lines.append("")

        lines.append("# HELP catalog_reclamation_failures_total Failed asset reclamations (orphan risk)")
        lines.append("# TYPE catalog_reclamation_failures_total counter")
        for reason, count in sorted(self._reclamation_failures.items()):
            lines.append(f'catalog_reclamation_failures_total{{reason="{reason}"}} {count}')
        lines.append("")

        return "\n".join(lines) + "\n"


# Global singleton
_metrics_collector: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get or create the global metrics collector."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    ASGI middleware that records request metrics.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Skip metrics endpoints themselves
        if "/metrics" in request.url.path:
            return await call_next(request)

        start = time.time()
        response = await call_next(request)
        duration = time.time() - start

        # Normalize path: replace UUIDs with {id} for aggregation
        parts = request.url.path.split("/")
        normalized = []
        for part in parts:
            if len(part) == 36 and part.count("-") == 4:
                normalized.append("{id}")
            else:
                normalized.append(part)
        normalized_path = "/".join(normalized)

        get_metrics_collector().record_request(
            method=request.method,
            path=normalized_path,
            status_code=response.status_code,
            duration=duration,
        )

        return response
