"""Refresh-token validation and rotation"""
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from principal_auth.errors import AccountNotActive, InvalidToken, TokenExpired, TokenRevoked
from principal_auth.models.principal import Principal
from principal_auth.models.session import AuthSession, SessionState
from principal_auth.services.sessions import SessionRecorder
from principal_auth.services.tokens import REFRESH, IssuedTokens, TokenIssuer
from principal_auth.utils.security import Clock, utcnow


class RefreshHandler:
    """Exchanges a refresh token for a new pair, rotating the session row.

    Session states: ``active`` -> ``active`` (rotated) on success,
    ``revoked`` on logout/password change/suspension, ``expired`` once
    ``expires_at`` passes. Revoked and expired are terminal.
    """

    def __init__(self, issuer: TokenIssuer, recorder: SessionRecorder, clock: Clock = utcnow) -> None:
        self._issuer = issuer
        self._recorder = recorder
        self._clock = clock

    def refresh(
        self,
        db: Session,
        refresh_token: str,
        role: Optional[str] = None,
    ) -> Tuple[Principal, AuthSession, IssuedTokens]:
        """Validate ``refresh_token`` and rotate its session.

        Raises, in check order:
            InvalidToken:     bad signature/format/type, role mismatch, or no
                              session holds this token (also a token already
                              consumed by an earlier rotation).
            TokenRevoked:     the session was revoked.
            TokenExpired:     the session passed its expiry.
            AccountNotActive: the owner is suspended or deleted.
        """
        payload = self._issuer.decode(refresh_token, expected_type=REFRESH)
        if role is not None and payload["role"] != role:
            raise InvalidToken("Refresh token was not issued for this role")

        session = self._recorder.find_by_token(db, refresh_token, for_update=True)
        if session is None or session.id != payload["sid"]:
            raise InvalidToken("Refresh token is not recognised")
        state = session.state(self._clock())
        if state == SessionState.REVOKED:
            raise TokenRevoked()
        if state == SessionState.EXPIRED:
            raise TokenExpired()

        principal = db.get(Principal, session.principal_id)
        if principal is None or not principal.is_active:
            raise AccountNotActive()

        tokens = self._issuer.issue(
            principal.id,
            principal.role,
            session.id,
            generation=(session.rotation_count or 0) + 1,
        )
        self._recorder.rotate(db, session, tokens.refresh, tokens.refresh_expires_at)
        return principal, session, tokens
