"""Database models"""
from principal_auth.models.login_event import LoginEvent
from principal_auth.models.principal import Principal, PrincipalStatus
from principal_auth.models.session import AuthSession, SessionState

__all__ = ["AuthSession", "LoginEvent", "Principal", "PrincipalStatus", "SessionState"]
