"""Rate limiting for API protection"""
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from principal_auth.config import settings
from principal_auth.utils.security import hash_token


def get_identifier(request: Request) -> str:
    """
    Get identifier for rate limiting

    Priority:
    1. Bearer token (hashed, never the raw value)
    2. IP address (for unauthenticated requests such as join/login/refresh)
    """
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        return f"bearer:{hash_token(auth[7:].strip())[:16]}"

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_identifier,
    default_limits=settings.RATE_LIMIT_DEFAULT,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


# Rate limit configurations for different endpoints
RATE_LIMITS = {
    # Credential endpoints - brute-force sensitive
    "join": "10/minute",
    "login": "20/minute",
    "password_change": "10/minute",

    # Token endpoints
    "refresh": "60/minute",
    "logout": "60/minute",
    "me": "120/minute",

    # Admin endpoints
    "admin": "100/minute",
}


def get_rate_limit(endpoint: str) -> str:
    """Get rate limit for specific endpoint"""
    return RATE_LIMITS.get(endpoint, settings.RATE_LIMIT_DEFAULT[0])
