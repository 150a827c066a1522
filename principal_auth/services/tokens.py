"""Token issuance and verification"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from principal_auth.config import Settings
from principal_auth.errors import InvalidToken
from principal_auth.utils.logger import logger
from principal_auth.utils.security import Clock, to_timestamp, utcnow

ACCESS = "access"
REFRESH = "refresh"

_RESERVED_CLAIMS = frozenset({"iss", "sub", "role", "type", "sid", "gen", "iat", "exp"})
_REQUIRED_CLAIMS = ("sub", "role", "sid")


@dataclass(frozen=True)
class IssuedTokens:
    """A signed access/refresh pair and their absolute (naive UTC) expiries"""

    access: str
    refresh: str
    access_expires_at: datetime
    refresh_expires_at: datetime


class TokenIssuer:
    """Signs and verifies the access/refresh JWT pair.

    Output is a pure function of the secret, the clock and the claims: the
    ``sid`` (session id) and ``gen`` (rotation generation) claims keep every
    pair distinct without a random ``jti``.
    """

    def __init__(self, settings: Settings, clock: Clock = utcnow) -> None:
        if not settings.JWT_SECRET:
            raise RuntimeError("JWT_SECRET is not configured")
        self._secret = settings.JWT_SECRET
        self._algorithm = settings.JWT_ALGORITHM
        self._issuer = settings.JWT_ISSUER
        self._clock = clock
        self.access_ttl = timedelta(seconds=settings.ACCESS_TOKEN_EXPIRE_SECONDS)
        self.refresh_ttl = timedelta(seconds=settings.REFRESH_TOKEN_EXPIRE_SECONDS)
        if self.access_ttl >= self.refresh_ttl:
            raise RuntimeError("Access token lifetime must be shorter than refresh token lifetime")

    def issue(
        self,
        principal_id: str,
        role: str,
        session_id: str,
        generation: int = 0,
        extra_claims: Optional[Dict[str, Any]] = None,
    ) -> IssuedTokens:
        """Sign a fresh access/refresh pair for one session generation.

        Args:
            principal_id: Value for the 'sub' claim.
            role:         Principal role, stored as the 'role' claim.
            session_id:   Session row id, stored as the 'sid' claim.
            generation:   Rotation counter of the session ('gen' claim).
            extra_claims: Additional claims; reserved claim names are ignored.
        """
        now = self._clock().replace(microsecond=0)
        access_expires_at = now + self.access_ttl
        refresh_expires_at = now + self.refresh_ttl

        claims: Dict[str, Any] = {
            key: value for key, value in (extra_claims or {}).items() if key not in _RESERVED_CLAIMS
        }
        claims.update({
            "iss": self._issuer,
            "sub": principal_id,
            "role": role,
            "sid": session_id,
            "gen": generation,
            "iat": to_timestamp(now),
        })

        access = self._sign({**claims, "type": ACCESS, "exp": to_timestamp(access_expires_at)})
        refresh = self._sign({**claims, "type": REFRESH, "exp": to_timestamp(refresh_expires_at)})

        return IssuedTokens(
            access=access,
            refresh=refresh,
            access_expires_at=access_expires_at,
            refresh_expires_at=refresh_expires_at,
        )

    def decode(self, token: str, expected_type: str) -> Dict[str, Any]:
        """Verify signature, issuer and token type and return the claims.

        Expiry is not checked here; callers compare ``exp`` (or the session
        row) against the injected clock so expiry and revocation are reported
        in a fixed order.

        Raises:
            InvalidToken: on a malformed token, bad signature, wrong issuer,
                wrong type or missing claims.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                options={"verify_exp": False},
            )
        except JWTError as exc:
            logger.debug(f"JWT decode failed: {exc}")
            raise InvalidToken() from exc

        if payload.get("type") != expected_type:
            raise InvalidToken(f"Expected a {expected_type} token")
        if any(not payload.get(claim) for claim in _REQUIRED_CLAIMS):
            raise InvalidToken()
        return payload

    def _sign(self, claims: Dict[str, Any]) -> str:
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def is_expired(self, payload: Dict[str, Any]) -> bool:
        exp = payload.get("exp")
        if not isinstance(exp, int):
            return True
        return exp <= to_timestamp(self._clock())
