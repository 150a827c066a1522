"""Admin schemas"""
from datetime import datetime
from typing import Optional

from pydantic import field_validator

from principal_auth.schemas.auth import PrincipalSummary, utc_timestamp


class PrincipalDetail(PrincipalSummary):
    """Principal as seen by administrators."""
    failed_login_attempts: int
    locked_until: Optional[datetime] = None
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    @field_validator("locked_until", "updated_at", "deleted_at")
    @classmethod
    def _admin_timestamps(cls, value: Optional[datetime]) -> Optional[datetime]:
        return utc_timestamp(value)
