"""Monitoring and observability middleware"""
import time
from typing import Callable

from fastapi import Request, Response
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

from principal_auth.utils.logger import logger


# ===== Prometheus Metrics =====

# Request metrics
http_requests_total = Counter(
    "principal_auth_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "principal_auth_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"]
)

http_errors_total = Counter(
    "principal_auth_http_errors_total",
    "Total HTTP errors",
    ["method", "endpoint", "status"]
)

# Auth metrics
auth_events_total = Counter(
    "principal_auth_events_total",
    "Auth operations by role, event and outcome",
    ["role", "event", "outcome"]  # event: join, login, refresh, password_change
)

sessions_revoked_total = Counter(
    "principal_auth_sessions_revoked_total",
    "Sessions revoked",
    ["reason"]  # logout, logout_all, password_change, suspended, deleted, admin
)

authentication_failures_total = Counter(
    "principal_auth_authentication_failures_total",
    "Total authentication failures",
    ["error_code"]
)


def _endpoint_label(request: Request) -> str:
    """Route template when matched, so path parameters do not explode cardinality"""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class MonitoringMiddleware(BaseHTTPMiddleware):
    """Middleware for monitoring and metrics collection"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and collect metrics"""
        start_time = time.time()
        method = request.method

        # Add request ID for tracing
        request_id = request.headers.get("x-request-id", f"req_{int(time.time() * 1000)}")
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            status = response.status_code
            endpoint = _endpoint_label(request)

            duration = time.time() - start_time
            http_requests_total.labels(method=method, endpoint=endpoint, status=status).inc()
            http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)

            # Log slow requests
            if duration > 1.0:
                logger.warning(
                    f"Slow request detected: {method} {endpoint}",
                    extra={"request_id": request_id, "action": "slow_request"},
                )

            if status >= 400:
                http_errors_total.labels(method=method, endpoint=endpoint, status=status).inc()

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration:.3f}s"
            return response

        except Exception:
            endpoint = _endpoint_label(request)
            http_errors_total.labels(method=method, endpoint=endpoint, status=500).inc()
            logger.error(
                f"Request failed: {method} {endpoint}",
                extra={"request_id": request_id},
                exc_info=True,
            )
            raise


def record_auth_event(role: str, event: str, outcome: str) -> None:
    """Record an auth operation outcome"""
    auth_events_total.labels(role=role, event=event, outcome=outcome).inc()


def record_revocations(reason: str, count: int) -> None:
    """Record revoked sessions"""
    if count:
        sessions_revoked_total.labels(reason=reason).inc(count)


def record_auth_failure(error_code: str) -> None:
    """Record authentication failure"""
    authentication_failures_total.labels(error_code=error_code).inc()
