"""Per-role auth endpoints: join, login, refresh, logout, logoutAll, password change"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from principal_auth.api.deps import get_auth_service, get_client_info, require_principal
from principal_auth.database import get_db
from principal_auth.errors import Forbidden
from principal_auth.middleware.rate_limit import get_rate_limit, limiter
from principal_auth.schemas.auth import (
    AuthorizationToken,
    AuthorizedResponse,
    JoinRequest,
    LoginRequest,
    PasswordChangeRequest,
    PrincipalSummary,
    RefreshRequest,
    RevokeResponse,
)
from principal_auth.services.auth_service import AuthContext, AuthResult, AuthService
from principal_auth.utils.security import as_utc


def to_authorized(result: AuthResult) -> AuthorizedResponse:
    """Shape an AuthResult as the join/login/refresh response body"""
    principal = result.principal
    return AuthorizedResponse(
        id=principal.id,
        role=principal.role,
        token=AuthorizationToken(
            access=result.tokens.access,
            refresh=result.tokens.refresh,
            expired_at=as_utc(result.tokens.access_expires_at),
            refreshable_until=as_utc(result.tokens.refresh_expires_at),
        ),
        principal=PrincipalSummary.model_validate(principal),
    )


def build_auth_router(role: str, self_registration: bool = True) -> APIRouter:
    """Build the ``/auth/{role}`` router for one principal role.

    The same handlers serve every role; only the role bound here differs.
    """
    router = APIRouter(prefix=f"/auth/{role}", tags=[f"auth:{role}"])
    authenticated = require_principal(role)
    authenticated_lenient = require_principal(role, allow_revoked=True)

    @router.post("/join", response_model=AuthorizedResponse, status_code=status.HTTP_201_CREATED)
    @limiter.limit(get_rate_limit("join"))
    def join(
        request: Request,
        data: JoinRequest,
        db: Session = Depends(get_db),
        service: AuthService = Depends(get_auth_service),
    ) -> AuthorizedResponse:
        """Register a new principal and issue its first token pair."""
        if not self_registration:
            raise Forbidden(f"Self-registration is disabled for role '{role}'")
        result = service.join(
            db,
            role,
            data.email,
            data.password,
            display_name=data.display_name,
            client=get_client_info(request),
        )
        return to_authorized(result)

    @router.post("/login", response_model=AuthorizedResponse)
    @limiter.limit(get_rate_limit("login"))
    def login(
        request: Request,
        data: LoginRequest,
        db: Session = Depends(get_db),
        service: AuthService = Depends(get_auth_service),
    ) -> AuthorizedResponse:
        """Exchange email and password for a token pair on a new session.

        Unknown emails and wrong passwords produce the same 401 response.
        """
        result = service.login(db, role, data.email, data.password, client=get_client_info(request))
        return to_authorized(result)

    @router.post("/refresh", response_model=AuthorizedResponse)
    @limiter.limit(get_rate_limit("refresh"))
    def refresh(
        request: Request,
        data: RefreshRequest,
        db: Session = Depends(get_db),
        service: AuthService = Depends(get_auth_service),
    ) -> AuthorizedResponse:
        """Rotate a refresh token. The presented token stops working."""
        result = service.refresh(db, role, data.refresh_token)
        return to_authorized(result)

    @router.post("/logout", response_model=RevokeResponse)
    @limiter.limit(get_rate_limit("logout"))
    def logout(
        request: Request,
        ctx: AuthContext = Depends(authenticated_lenient),
        db: Session = Depends(get_db),
        service: AuthService = Depends(get_auth_service),
    ) -> RevokeResponse:
        """Revoke the session the bearer token belongs to. Repeating it is a no-op."""
        return RevokeResponse(revoked=service.logout(db, ctx))

    @router.post("/logoutAll", response_model=RevokeResponse)
    @limiter.limit(get_rate_limit("logout"))
    def logout_all(
        request: Request,
        ctx: AuthContext = Depends(authenticated_lenient),
        db: Session = Depends(get_db),
        service: AuthService = Depends(get_auth_service),
    ) -> RevokeResponse:
        """Revoke every active session of the caller."""
        return RevokeResponse(revoked=service.logout_all(db, ctx))

    @router.put("/password/change", response_model=AuthorizedResponse)
    @limiter.limit(get_rate_limit("password_change"))
    def change_password(
        request: Request,
        data: PasswordChangeRequest,
        ctx: AuthContext = Depends(authenticated),
        db: Session = Depends(get_db),
        service: AuthService = Depends(get_auth_service),
    ) -> AuthorizedResponse:
        """Change the password, revoke all sessions, and start a new one."""
        result = service.change_password(
            db,
            ctx,
            data.current_password,
            data.new_password,
            client=get_client_info(request),
        )
        return to_authorized(result)

    @router.get("/me", response_model=PrincipalSummary)
    @limiter.limit(get_rate_limit("me"))
    def me(
        request: Request,
        ctx: AuthContext = Depends(authenticated),
    ) -> PrincipalSummary:
        """Return the caller's principal summary."""
        return PrincipalSummary.model_validate(ctx.principal)

    return router
