"""Admin-initiated principal management: suspend, activate, delete, revoke sessions"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from principal_auth.api.deps import get_auth_service, require_principal
from principal_auth.database import get_db
from principal_auth.errors import Forbidden
from principal_auth.middleware.rate_limit import get_rate_limit, limiter
from principal_auth.schemas.admin import PrincipalDetail
from principal_auth.schemas.auth import RevokeResponse
from principal_auth.services.auth_service import AuthContext, AuthService


def _not_self(ctx: AuthContext, principal_id: str) -> None:
    if ctx.principal.id == principal_id:
        raise Forbidden("Administrators cannot apply this action to their own account")


def build_admin_router(admin_role: str) -> APIRouter:
    """Build the ``/admin/principals`` router guarded by ``admin_role`` tokens."""
    router = APIRouter(prefix="/admin/principals", tags=["admin"])
    require_admin = require_principal(admin_role)

    @router.get("/{principal_id}", response_model=PrincipalDetail)
    @limiter.limit(get_rate_limit("admin"))
    def get_principal(
        request: Request,
        principal_id: str,
        db: Session = Depends(get_db),
        service: AuthService = Depends(get_auth_service),
        ctx: AuthContext = Depends(require_admin),
    ):
        """Return a principal including lockout and deletion fields (admin only)."""
        return service.get_principal(db, principal_id)

    @router.post("/{principal_id}/suspend", response_model=PrincipalDetail)
    @limiter.limit(get_rate_limit("admin"))
    def suspend_principal(
        request: Request,
        principal_id: str,
        db: Session = Depends(get_db),
        service: AuthService = Depends(get_auth_service),
        ctx: AuthContext = Depends(require_admin),
    ):
        """
        Suspend a principal (admin only).

        All of its sessions are revoked; it can neither log in nor refresh
        until reactivated.
        """
        _not_self(ctx, principal_id)
        return service.suspend(db, principal_id)

    @router.post("/{principal_id}/activate", response_model=PrincipalDetail)
    @limiter.limit(get_rate_limit("admin"))
    def activate_principal(
        request: Request,
        principal_id: str,
        db: Session = Depends(get_db),
        service: AuthService = Depends(get_auth_service),
        ctx: AuthContext = Depends(require_admin),
    ):
        """Reactivate a suspended principal and clear its lockout (admin only)."""
        return service.activate(db, principal_id)

    @router.delete("/{principal_id}", response_model=PrincipalDetail)
    @limiter.limit(get_rate_limit("admin"))
    def delete_principal(
        request: Request,
        principal_id: str,
        db: Session = Depends(get_db),
        service: AuthService = Depends(get_auth_service),
        ctx: AuthContext = Depends(require_admin),
    ):
        """Soft-delete a principal and revoke its sessions (admin only)."""
        _not_self(ctx, principal_id)
        return service.soft_delete(db, principal_id)

    @router.post("/{principal_id}/sessions/revoke", response_model=RevokeResponse)
    @limiter.limit(get_rate_limit("admin"))
    def revoke_principal_sessions(
        request: Request,
        principal_id: str,
        db: Session = Depends(get_db),
        service: AuthService = Depends(get_auth_service),
        ctx: AuthContext = Depends(require_admin),
    ) -> RevokeResponse:
        """Revoke every active session of a principal (admin only)."""
        return RevokeResponse(revoked=service.revoke_principal_sessions(db, principal_id))

    return router
