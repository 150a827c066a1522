"""Middleware modules for production-ready features"""
from principal_auth.middleware.monitoring import (
    MonitoringMiddleware,
    record_auth_event,
    record_auth_failure,
    record_revocations,
)
from principal_auth.middleware.rate_limit import get_rate_limit, limiter

__all__ = [
    "MonitoringMiddleware",
    "record_auth_event",
    "record_auth_failure",
    "record_revocations",
    "limiter",
    "get_rate_limit",
]
