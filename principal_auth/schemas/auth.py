"""Auth request/response schemas"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from principal_auth.utils.security import as_utc, normalize_identifier

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 256


def utc_timestamp(value: Optional[datetime]) -> Optional[datetime]:
    """Stored timestamps are naive UTC; responses carry the offset"""
    return as_utc(value) if value is not None else None


def _validate_email(value: str) -> str:
    value = normalize_identifier(value)
    local, sep, domain = value.partition("@")
    if not sep or not local or "." not in domain or " " in value:
        raise ValueError("must be a valid email address")
    return value


class JoinRequest(BaseModel):
    email: str = Field(..., max_length=320, description="Login identifier; stored lower-cased")
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    display_name: Optional[str] = Field(None, min_length=1, max_length=120)

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        return _validate_email(value)


class LoginRequest(BaseModel):
    email: str = Field(..., max_length=320)
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LENGTH)

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        return normalize_identifier(value)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1, description="Refresh token from join/login/refresh")


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LENGTH)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)


class AuthorizationToken(BaseModel):
    access: str
    refresh: str
    expired_at: datetime        # access token expiry
    refreshable_until: datetime  # refresh token expiry


class PrincipalSummary(BaseModel):
    id: str
    role: str
    email: str
    display_name: Optional[str]
    status: str
    created_at: datetime
    last_login_at: Optional[datetime] = None

    @field_validator("created_at", "last_login_at")
    @classmethod
    def _timestamps(cls, value: Optional[datetime]) -> Optional[datetime]:
        return utc_timestamp(value)

    class Config:
        from_attributes = True


class AuthorizedResponse(BaseModel):
    """Returned by join, login, refresh and password change."""
    id: str
    role: str
    token: AuthorizationToken
    principal: PrincipalSummary


class RevokeResponse(BaseModel):
    revoked: int  # sessions newly revoked by this call; 0 when already revoked
