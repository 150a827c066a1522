"""Principal model - a registered identity of any role"""
from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from principal_auth.database import Base
from principal_auth.utils.security import utcnow


class PrincipalStatus:
    """Values of ``Principal.status``"""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    DELETED = "deleted"


class Principal(Base):
    """A member, admin, moderator, seller, ... identified by (role, email).

    Rows are soft-deleted: ``deleted_at`` is stamped and ``status`` set to
    ``deleted``; the row itself stays for the audit trail.
    """

    __tablename__ = "principals"
    __table_args__ = (UniqueConstraint("role", "email", name="uq_principals_role_email"),)

    id = Column(String(36), primary_key=True)
    role = Column(String(32), nullable=False, index=True)
    email = Column(String(320), nullable=False, index=True)  # normalised, lower-case
    password_hash = Column(String(255), nullable=False)      # argon2
    display_name = Column(String(120), nullable=True)
    status = Column(String(20), default=PrincipalStatus.ACTIVE, nullable=False, index=True)
    failed_login_attempts = Column(Integer, default=0, nullable=False)
    locked_until = Column(DateTime, nullable=True)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    # Relationships
    sessions = relationship("AuthSession", back_populates="principal")

    @property
    def is_active(self) -> bool:
        return self.status == PrincipalStatus.ACTIVE and self.deleted_at is None
