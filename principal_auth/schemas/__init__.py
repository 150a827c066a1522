"""Pydantic schemas for request/response validation"""
from principal_auth.schemas.admin import PrincipalDetail
from principal_auth.schemas.auth import (
    AuthorizationToken,
    AuthorizedResponse,
    JoinRequest,
    LoginRequest,
    PasswordChangeRequest,
    PrincipalSummary,
    RefreshRequest,
    RevokeResponse,
)

__all__ = [
    "AuthorizationToken",
    "AuthorizedResponse",
    "JoinRequest",
    "LoginRequest",
    "PasswordChangeRequest",
    "PrincipalDetail",
    "PrincipalSummary",
    "RefreshRequest",
    "RevokeResponse",
]
