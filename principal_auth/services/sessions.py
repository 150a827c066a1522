"""Session recording, rotation, and revocation"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from principal_auth.errors import InternalError
from principal_auth.models.session import AuthSession
from principal_auth.utils.logger import logger
from principal_auth.utils.security import Clock, hash_token, utcnow


class RevokeReason:
    LOGOUT = "logout"
    LOGOUT_ALL = "logout_all"
    PASSWORD_CHANGE = "password_change"
    SUSPENDED = "suspended"
    DELETED = "deleted"
    ADMIN = "admin"


@dataclass(frozen=True)
class ClientInfo:
    """Request metadata stored alongside sessions and login events"""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def _truncate(value: Optional[str], length: int) -> Optional[str]:
    return value[:length] if value else None


class SessionRecorder:
    """Persists refresh-token metadata. Callers own the transaction."""

    def __init__(self, clock: Clock = utcnow) -> None:
        self._clock = clock

    def record(
        self,
        db: Session,
        session_id: str,
        principal_id: str,
        refresh_token: str,
        expires_at: datetime,
        client: Optional[ClientInfo] = None,
    ) -> AuthSession:
        """Insert a new session row for a freshly issued refresh token"""
        client = client or ClientInfo()
        now = self._clock()
        session = AuthSession(
            id=session_id,
            principal_id=principal_id,
            token_hash=hash_token(refresh_token),
            expires_at=expires_at,
            rotation_count=0,
            last_used_at=now,
            ip_address=_truncate(client.ip_address, 45),
            user_agent=_truncate(client.user_agent, 255),
            created_at=now,
        )
        db.add(session)
        self._flush(db, "record")
        return session

    def rotate(
        self,
        db: Session,
        session: AuthSession,
        refresh_token: str,
        expires_at: datetime,
    ) -> AuthSession:
        """Replace the session's refresh token in place (rotation-by-update)"""
        session.token_hash = hash_token(refresh_token)
        session.expires_at = expires_at
        session.rotation_count = (session.rotation_count or 0) + 1
        session.last_used_at = self._clock()
        self._flush(db, "rotate")
        return session

    def find_by_token(self, db: Session, refresh_token: str, for_update: bool = False) -> Optional[AuthSession]:
        query = db.query(AuthSession).filter(AuthSession.token_hash == hash_token(refresh_token))
        if for_update:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def _flush(db: Session, operation: str) -> None:
        try:
            db.flush()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(f"Failed to {operation} session", exc_info=True)
            raise InternalError("Failed to persist session") from exc


class RevocationHandler:
    """Stamps ``revoked_at`` on active sessions.

    Revoking an already revoked session is a no-op; the returned count only
    includes sessions revoked by this call.
    """

    def __init__(self, clock: Clock = utcnow) -> None:
        self._clock = clock

    def revoke_session(self, db: Session, principal_id: str, session_id: str, reason: str) -> int:
        count = db.query(AuthSession).filter(
            AuthSession.id == session_id,
            AuthSession.principal_id == principal_id,
            AuthSession.revoked_at.is_(None),
        ).update(
            {AuthSession.revoked_at: self._clock(), AuthSession.revoke_reason: reason},
            synchronize_session="fetch",
        )
        self._log(principal_id, reason, count, session_id=session_id)
        return count

    def revoke_all(
        self,
        db: Session,
        principal_id: str,
        reason: str,
        except_session_id: Optional[str] = None,
    ) -> int:
        query = db.query(AuthSession).filter(
            AuthSession.principal_id == principal_id,
            AuthSession.revoked_at.is_(None),
        )
        if except_session_id is not None:
            query = query.filter(AuthSession.id != except_session_id)
        count = query.update(
            {AuthSession.revoked_at: self._clock(), AuthSession.revoke_reason: reason},
            synchronize_session="fetch",
        )
        self._log(principal_id, reason, count)
        return count

    @staticmethod
    def _log(principal_id: str, reason: str, count: int, session_id: Optional[str] = None) -> None:
        extra = {"principal_id": principal_id, "reason": reason, "count": count, "action": "revoke_session"}
        if session_id is not None:
            extra["session_id"] = session_id
        logger.info(f"Revoked {count} session(s) for {principal_id}", extra=extra)
