"""Auth error taxonomy.

Every error carries an HTTP ``status_code`` and a stable ``error_code``; the
exception handler installed in ``main`` renders them as
``{"error": <code>, "message": <text>}``. Nothing in this package retries.
"""
from typing import Optional


class AuthError(Exception):
    """Base class for errors surfaced to the caller of an auth operation."""

    status_code: int = 400
    error_code: str = "bad_request"
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidCredentials(AuthError):
    status_code = 401
    error_code = "invalid_credentials"
    default_message = "Invalid email or password"


class AccountNotActive(AuthError):
    status_code = 403
    error_code = "account_not_active"
    default_message = "Account is not active"


class AccountLocked(AuthError):
    status_code = 423
    error_code = "account_locked"
    default_message = "Account temporarily locked due to repeated failed login attempts"


class InvalidToken(AuthError):
    status_code = 401
    error_code = "invalid_token"
    default_message = "Invalid token"


class TokenExpired(AuthError):
    status_code = 401
    error_code = "token_expired"
    default_message = "Token has expired"


class TokenRevoked(AuthError):
    status_code = 401
    error_code = "token_revoked"
    default_message = "Token has been revoked"


class DuplicateIdentifier(AuthError):
    status_code = 409
    error_code = "duplicate_identifier"
    default_message = "Email already registered"


class PrincipalNotFound(AuthError):
    status_code = 404
    error_code = "not_found"
    default_message = "Principal not found"


class Forbidden(AuthError):
    status_code = 403
    error_code = "forbidden"
    default_message = "Forbidden"


class InternalError(AuthError):
    status_code = 500
    error_code = "internal_error"
    default_message = "An unexpected error occurred"


__all__ = [
    "AuthError",
    "InvalidCredentials",
    "AccountNotActive",
    "AccountLocked",
    "InvalidToken",
    "TokenExpired",
    "TokenRevoked",
    "DuplicateIdentifier",
    "PrincipalNotFound",
    "Forbidden",
    "InternalError",
]
