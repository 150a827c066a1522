"""Principal auth service - join, login, refresh, logout, password change, bans.

One instance serves every configured role; the role is an argument of each
operation rather than a separate copy of the code. Operations take the
request's SQLAlchemy session and commit it themselves.
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from principal_auth.config import Settings
from principal_auth.errors import (
    AccountNotActive,
    AuthError,
    DuplicateIdentifier,
    Forbidden,
    InvalidCredentials,
    InvalidToken,
    PrincipalNotFound,
    TokenExpired,
    TokenRevoked,
)
from principal_auth.middleware.monitoring import record_auth_event, record_auth_failure, record_revocations
from principal_auth.models.login_event import LoginEvent
from principal_auth.models.principal import Principal, PrincipalStatus
from principal_auth.models.session import AuthSession
from principal_auth.services.credentials import CredentialVerifier
from principal_auth.services.refresh import RefreshHandler
from principal_auth.services.sessions import ClientInfo, RevocationHandler, RevokeReason, SessionRecorder
from principal_auth.services.tokens import ACCESS, IssuedTokens, TokenIssuer
from principal_auth.utils.logger import logger
from principal_auth.utils.security import Clock, generate_id, normalize_identifier, utcnow


@dataclass
class AuthResult:
    """Outcome of join/login/refresh/password change"""

    principal: Principal
    session_id: str
    tokens: IssuedTokens


@dataclass
class AuthContext:
    """Caller resolved from a bearer access token"""

    principal: Principal
    session_id: str

    @property
    def role(self) -> str:
        return self.principal.role


class AuthService:
    """Composes the credential verifier, token issuer, session recorder,
    refresh handler and revocation handler behind per-role operations."""

    def __init__(self, settings: Settings, clock: Optional[Clock] = None) -> None:
        self.settings = settings
        self.clock: Clock = clock or utcnow
        self.credentials = CredentialVerifier(settings, self.clock)
        self.issuer = TokenIssuer(settings, self.clock)
        self.recorder = SessionRecorder(self.clock)
        self.revocations = RevocationHandler(self.clock)
        self.refresher = RefreshHandler(self.issuer, self.recorder, self.clock)

    # ------------------------------------------------------------------
    # Registration and login
    # ------------------------------------------------------------------

    def join(
        self,
        db: Session,
        role: str,
        email: str,
        password: str,
        display_name: Optional[str] = None,
        client: Optional[ClientInfo] = None,
    ) -> AuthResult:
        """Register a principal and open its first session.

        Raises:
            DuplicateIdentifier: a principal with this role and email exists,
                including soft-deleted ones.
        """
        self._check_role(role)
        email = normalize_identifier(email)

        exists = db.query(Principal).filter(Principal.role == role, Principal.email == email).count()
        if exists:
            record_auth_event(role, "join", "duplicate")
            raise DuplicateIdentifier()

        now = self.clock()
        principal = Principal(
            id=generate_id(),
            role=role,
            email=email,
            password_hash=self.credentials.hash_password(password),
            display_name=display_name,
            status=PrincipalStatus.ACTIVE,
            failed_login_attempts=0,
            last_login_at=now,
            created_at=now,
            updated_at=now,
        )
        db.add(principal)
        try:
            db.flush()
        except IntegrityError as exc:
            # Lost a race with a concurrent join for the same identifier
            db.rollback()
            record_auth_event(role, "join", "duplicate")
            raise DuplicateIdentifier() from exc

        result = self._open_session(db, principal, client)
        db.commit()

        logger.info(
            f"Registered {role} {principal.id}",
            extra={"principal_id": principal.id, "role": role, "session_id": result.session_id, "action": "join"},
        )
        record_auth_event(role, "join", "success")
        return result

    def login(
        self,
        db: Session,
        role: str,
        email: str,
        password: str,
        client: Optional[ClientInfo] = None,
    ) -> AuthResult:
        """Verify credentials and open a new session.

        Every attempt is written to the login history.

        Raises:
            InvalidCredentials, AccountLocked, AccountNotActive
        """
        self._check_role(role)
        client = client or ClientInfo()
        email = normalize_identifier(email)

        try:
            principal = self.credentials.verify(db, role, email, password)
        except AuthError as exc:
            known = self.credentials.find_principal(db, role, email)
            self._record_login(db, role, email, known.id if known else None, exc.error_code, client)
            db.commit()
            logger.warning(
                f"Login failed for {role}: {exc.error_code}",
                extra={"role": role, "reason": exc.error_code, "action": "login"},
            )
            record_auth_event(role, "login", "failure")
            record_auth_failure(exc.error_code)
            raise

        result = self._open_session(db, principal, client)
        self._record_login(db, role, email, principal.id, None, client)
        db.commit()

        logger.info(
            f"Login succeeded for {role} {principal.id}",
            extra={"principal_id": principal.id, "role": role, "session_id": result.session_id, "action": "login"},
        )
        record_auth_event(role, "login", "success")
        return result

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def refresh(self, db: Session, role: Optional[str], refresh_token: str) -> AuthResult:
        """Rotate a refresh token; see :class:`RefreshHandler` for the checks"""
        try:
            principal, session, tokens = self.refresher.refresh(db, refresh_token, role=role)
        except AuthError as exc:
            db.rollback()
            record_auth_event(role or "any", "refresh", "failure")
            record_auth_failure(exc.error_code)
            raise
        db.commit()

        logger.info(
            f"Refreshed session {session.id}",
            extra={"principal_id": principal.id, "role": principal.role, "session_id": session.id, "action": "refresh"},
        )
        record_auth_event(principal.role, "refresh", "success")
        return AuthResult(principal=principal, session_id=session.id, tokens=tokens)

    def authenticate(
        self,
        db: Session,
        access_token: str,
        role: Optional[str] = None,
        allow_revoked: bool = False,
    ) -> AuthContext:
        """Resolve the caller of a bearer access token.

        ``allow_revoked`` lets logout endpoints accept a token whose session is
        already revoked, which makes repeated logouts succeed as no-ops.

        Raises:
            InvalidToken, TokenExpired, TokenRevoked, Forbidden, AccountNotActive
        """
        payload = self.issuer.decode(access_token, expected_type=ACCESS)
        if self.issuer.is_expired(payload):
            raise TokenExpired()
        if role is not None and payload["role"] != role:
            raise Forbidden(f"A {role} token is required")

        session = db.get(AuthSession, payload["sid"])
        if session is None or session.principal_id != payload["sub"]:
            raise InvalidToken()
        if session.revoked_at is not None and not allow_revoked:
            raise TokenRevoked()

        principal = db.get(Principal, payload["sub"])
        if principal is None:
            raise InvalidToken()
        if not principal.is_active:
            raise AccountNotActive()
        return AuthContext(principal=principal, session_id=session.id)

    # ------------------------------------------------------------------
    # Revocation
    # ------------------------------------------------------------------

    def logout(self, db: Session, context: AuthContext) -> int:
        """Revoke the caller's current session"""
        count = self.revocations.revoke_session(
            db, context.principal.id, context.session_id, RevokeReason.LOGOUT
        )
        db.commit()
        record_revocations(RevokeReason.LOGOUT, count)
        return count

    def logout_all(self, db: Session, context: AuthContext) -> int:
        """Revoke every active session of the caller"""
        count = self.revocations.revoke_all(db, context.principal.id, RevokeReason.LOGOUT_ALL)
        db.commit()
        record_revocations(RevokeReason.LOGOUT_ALL, count)
        return count

    def change_password(
        self,
        db: Session,
        context: AuthContext,
        current_password: str,
        new_password: str,
        client: Optional[ClientInfo] = None,
    ) -> AuthResult:
        """Set a new password, revoke all existing sessions, open a new one.

        Raises:
            InvalidCredentials: ``current_password`` does not match.
        """
        principal = context.principal
        if not self.credentials.check_password(principal.password_hash, current_password):
            record_auth_event(principal.role, "password_change", "failure")
            raise InvalidCredentials("Current password is incorrect")

        principal.password_hash = self.credentials.hash_password(new_password)
        principal.updated_at = self.clock()
        count = self.revocations.revoke_all(db, principal.id, RevokeReason.PASSWORD_CHANGE)
        result = self._open_session(db, principal, client)
        db.commit()

        logger.info(
            f"Password changed for {principal.id}",
            extra={"principal_id": principal.id, "role": principal.role, "count": count, "action": "password_change"},
        )
        record_revocations(RevokeReason.PASSWORD_CHANGE, count)
        record_auth_event(principal.role, "password_change", "success")
        return result

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def get_principal(self, db: Session, principal_id: str) -> Principal:
        principal = db.get(Principal, principal_id)
        if principal is None:
            raise PrincipalNotFound(f"Principal {principal_id} not found")
        return principal

    def suspend(self, db: Session, principal_id: str) -> Principal:
        """Suspend a principal and revoke all of its sessions"""
        principal = self.get_principal(db, principal_id)
        if principal.status == PrincipalStatus.DELETED:
            raise AccountNotActive("Principal is deleted")
        principal.status = PrincipalStatus.SUSPENDED
        principal.updated_at = self.clock()
        count = self.revocations.revoke_all(db, principal.id, RevokeReason.SUSPENDED)
        db.commit()
        self._log_admin("suspend", principal, count)
        record_revocations(RevokeReason.SUSPENDED, count)
        return principal

    def activate(self, db: Session, principal_id: str) -> Principal:
        """Reactivate a suspended principal and clear any lockout"""
        principal = self.get_principal(db, principal_id)
        if principal.status == PrincipalStatus.DELETED:
            raise AccountNotActive("Deleted principals cannot be reactivated")
        principal.status = PrincipalStatus.ACTIVE
        principal.failed_login_attempts = 0
        principal.locked_until = None
        principal.updated_at = self.clock()
        db.commit()
        self._log_admin("activate", principal, 0)
        return principal

    def soft_delete(self, db: Session, principal_id: str) -> Principal:
        """Soft-delete a principal and revoke all of its sessions"""
        principal = self.get_principal(db, principal_id)
        now = self.clock()
        principal.status = PrincipalStatus.DELETED
        principal.deleted_at = principal.deleted_at or now
        principal.updated_at = now
        count = self.revocations.revoke_all(db, principal.id, RevokeReason.DELETED)
        db.commit()
        self._log_admin("delete", principal, count)
        record_revocations(RevokeReason.DELETED, count)
        return principal

    def revoke_principal_sessions(self, db: Session, principal_id: str) -> int:
        principal = self.get_principal(db, principal_id)
        count = self.revocations.revoke_all(db, principal.id, RevokeReason.ADMIN)
        db.commit()
        self._log_admin("revoke_sessions", principal, count)
        record_revocations(RevokeReason.ADMIN, count)
        return count

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_role(self, role: str) -> None:
        if role not in self.settings.PRINCIPAL_ROLES:
            raise ValueError(f"Unknown principal role: {role}")

    def _open_session(self, db: Session, principal: Principal, client: Optional[ClientInfo]) -> AuthResult:
        session_id = generate_id()
        tokens = self.issuer.issue(principal.id, principal.role, session_id)
        self.recorder.record(
            db,
            session_id=session_id,
            principal_id=principal.id,
            refresh_token=tokens.refresh,
            expires_at=tokens.refresh_expires_at,
            client=client,
        )
        return AuthResult(principal=principal, session_id=session_id, tokens=tokens)

    def _record_login(
        self,
        db: Session,
        role: str,
        email: str,
        principal_id: Optional[str],
        failure_reason: Optional[str],
        client: ClientInfo,
    ) -> None:
        db.add(LoginEvent(
            principal_id=principal_id,
            role=role,
            email=email[:320],
            success=failure_reason is None,
            failure_reason=failure_reason,
            ip_address=client.ip_address[:45] if client.ip_address else None,
            user_agent=client.user_agent[:255] if client.user_agent else None,
            created_at=self.clock(),
        ))

    @staticmethod
    def _log_admin(action: str, principal: Principal, count: int) -> None:
        logger.info(
            f"Admin {action} on {principal.id}",
            extra={"principal_id": principal.id, "role": principal.role, "count": count, "action": f"admin_{action}"},
        )
