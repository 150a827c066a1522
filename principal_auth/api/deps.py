"""API dependencies for authentication and authorization.

Every authenticated endpoint takes ``Authorization: Bearer <access token>``.
The token's ``sid`` claim ties it to a session row, so revoking the session
(logout, password change, suspension) also invalidates its access tokens.
"""
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from principal_auth.database import get_db
from principal_auth.errors import InvalidToken
from principal_auth.services.auth_service import AuthContext, AuthService
from principal_auth.services.sessions import ClientInfo

_bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    """Return the process-wide AuthService built at startup"""
    return request.app.state.auth_service


def get_client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def _bearer_token(credentials: Optional[HTTPAuthorizationCredentials]) -> str:
    if not credentials or not credentials.credentials:
        raise InvalidToken("Authorization: Bearer <token> header required")
    return credentials.credentials


# ---------------------------------------------------------------------------
# require_principal factory
# ---------------------------------------------------------------------------

def require_principal(role: Optional[str] = None, allow_revoked: bool = False) -> Callable:
    """Return a FastAPI dependency resolving the bearer token to an AuthContext.

    Usage::

        @router.get("/me")
        def me(ctx: AuthContext = Depends(require_principal("member"))):
            ...

    Args:
        role:          Required role claim; ``None`` accepts any role.
        allow_revoked: Accept tokens of revoked sessions (logout endpoints).
    """

    def _principal_dep(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
        db: Session = Depends(get_db),
        service: AuthService = Depends(get_auth_service),
    ) -> AuthContext:
        return service.authenticate(db, _bearer_token(credentials), role=role, allow_revoked=allow_revoked)

    # Give FastAPI a unique name so it doesn't collapse distinct dependencies
    suffix = (role or "any").replace("-", "_")
    _principal_dep.__name__ = f"require_principal_{suffix}{'_lenient' if allow_revoked else ''}"
    return _principal_dep
