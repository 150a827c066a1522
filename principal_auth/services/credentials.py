"""Password hashing and credential verification"""
from datetime import datetime, timedelta
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerifyMismatchError
from sqlalchemy.orm import Session

from principal_auth.config import Settings
from principal_auth.errors import AccountLocked, AccountNotActive, InvalidCredentials
from principal_auth.models.principal import Principal
from principal_auth.utils.logger import logger
from principal_auth.utils.security import Clock, normalize_identifier, utcnow


class CredentialVerifier:
    """Checks an (identifier, password) pair against the stored argon2 hash."""

    def __init__(self, settings: Settings, clock: Clock = utcnow) -> None:
        self._hasher = PasswordHasher(
            time_cost=settings.ARGON2_TIME_COST,
            memory_cost=settings.ARGON2_MEMORY_COST,
            parallelism=settings.ARGON2_PARALLELISM,
        )
        self._clock = clock
        self._max_failures = settings.MAX_FAILED_LOGIN_ATTEMPTS
        self._lockout = timedelta(seconds=settings.LOCKOUT_SECONDS)
        # Verified against when the identifier is unknown so both paths cost the same
        self._dummy_hash = self._hasher.hash("principal-auth-timing-equaliser")

    def hash_password(self, password: str) -> str:
        """Hash a plaintext password using Argon2"""
        return self._hasher.hash(password)

    def check_password(self, password_hash: str, password: str) -> bool:
        """Verify a plaintext password against an argon2 hash"""
        try:
            return self._hasher.verify(password_hash, password)
        except VerifyMismatchError:
            return False
        except InvalidHashError:
            logger.error("Stored password hash is not a valid argon2 hash")
            return False

    def find_principal(self, db: Session, role: str, identifier: str) -> Optional[Principal]:
        """Return the non-deleted principal with this role and identifier"""
        return db.query(Principal).filter(
            Principal.role == role,
            Principal.email == normalize_identifier(identifier),
            Principal.deleted_at.is_(None),
        ).first()

    def verify(self, db: Session, role: str, identifier: str, password: str) -> Principal:
        """Return the principal whose credentials match.

        Order of checks: unknown identifier, lockout, password, status. The
        status is only reported once the password matched, so a caller without
        the password cannot learn whether an account exists or is suspended.

        Side effects on the session (not committed): the failure counter and
        lock on mismatch; counter reset, ``last_login_at`` and a rehash on
        success.

        Raises:
            InvalidCredentials, AccountLocked, AccountNotActive
        """
        principal = self.find_principal(db, role, identifier)
        if principal is None:
            self.check_password(self._dummy_hash, password)
            raise InvalidCredentials()

        now = self._clock()
        if principal.locked_until is not None and principal.locked_until > now:
            raise AccountLocked()

        if not self.check_password(principal.password_hash, password):
            self._register_failure(principal, now)
            raise InvalidCredentials()

        if not principal.is_active:
            raise AccountNotActive()

        principal.failed_login_attempts = 0
        principal.locked_until = None
        principal.last_login_at = now
        if self._hasher.check_needs_rehash(principal.password_hash):
            principal.password_hash = self.hash_password(password)
        return principal

    def _register_failure(self, principal: Principal, now: datetime) -> None:
        principal.failed_login_attempts = (principal.failed_login_attempts or 0) + 1
        if self._max_failures and principal.failed_login_attempts >= self._max_failures:
            principal.locked_until = now + self._lockout
            principal.failed_login_attempts = 0
            logger.warning(
                f"Locked principal {principal.id} after repeated login failures",
                extra={"principal_id": principal.id, "role": principal.role, "action": "lockout"},
            )
