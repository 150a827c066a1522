"""AuthSession model - one issued refresh token"""
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from principal_auth.database import Base
from principal_auth.utils.security import utcnow


class SessionState:
    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"


class AuthSession(Base):
    """Stores the hash of the current refresh token of one login session.

    The row id is the ``sid`` claim of every token issued for the session.
    Rotation updates ``token_hash``/``expires_at`` in place; revocation stamps
    ``revoked_at``. Rows are never deleted.
    """

    __tablename__ = "auth_sessions"

    id = Column(String(36), primary_key=True)
    principal_id = Column(String(36), ForeignKey("principals.id"), nullable=False, index=True)
    token_hash = Column(String(64), unique=True, nullable=False, index=True)  # SHA256 of refresh token
    expires_at = Column(DateTime, nullable=False, index=True)
    revoked_at = Column(DateTime, nullable=True)
    revoke_reason = Column(String(32), nullable=True)  # logout, logout_all, password_change, ...
    rotation_count = Column(Integer, default=0, nullable=False)
    last_used_at = Column(DateTime, nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    principal = relationship("Principal", back_populates="sessions")

    def state(self, now: datetime) -> str:
        """Revoked wins over expired; expiry is only detected on use"""
        if self.revoked_at is not None:
            return SessionState.REVOKED
        if self.expires_at <= now:
            return SessionState.EXPIRED
        return SessionState.ACTIVE
