"""LoginEvent model - login history"""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String

from principal_auth.database import Base
from principal_auth.utils.security import utcnow


class LoginEvent(Base):
    """One row per login attempt, successful or not.

    ``principal_id`` is null when the submitted identifier matched nobody.
    """

    __tablename__ = "login_events"

    id = Column(Integer, primary_key=True, index=True)
    principal_id = Column(String(36), ForeignKey("principals.id"), nullable=True, index=True)
    role = Column(String(32), nullable=False)
    email = Column(String(320), nullable=False)
    success = Column(Boolean, nullable=False)
    failure_reason = Column(String(50), nullable=True)  # error code of the failure
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
