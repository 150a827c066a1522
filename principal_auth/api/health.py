"""Health check endpoints"""
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from principal_auth import __version__
from principal_auth.database import get_db
from principal_auth.models.principal import Principal, PrincipalStatus
from principal_auth.models.session import AuthSession
from principal_auth.utils.security import utcnow

router = APIRouter(prefix="/health", tags=["health"])

STARTUP_TIME = time.time()
MAX_DB_LATENCY_MS = 1000


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _uptime() -> float:
    return round(time.time() - STARTUP_TIME, 2)


def _unavailable(state: str, message: str, checks: Optional[Dict[str, Any]] = None) -> JSONResponse:
    content: Dict[str, Any] = {"status": state, "message": message, "timestamp": _timestamp()}
    if checks is not None:
        content["checks"] = checks
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=content)


@router.get("")
def health_check():
    """Process is up; no dependencies are touched."""
    return {
        "status": "healthy",
        "service": "principal-auth",
        "version": __version__,
        "timestamp": _timestamp(),
    }


@router.get("/ready")
def readiness_check(db: Session = Depends(get_db)):
    """
    Readiness probe

    Sessions and credentials live in the database, so the service is only
    ready while a round trip succeeds in under a second. Returns 503 otherwise.
    """
    checks: Dict[str, Any] = {"database": False, "database_latency_ms": None}

    started = time.perf_counter()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        return _unavailable("unhealthy", f"Database check failed: {e}", checks)
    latency_ms = round((time.perf_counter() - started) * 1000, 2)
    checks.update(database=True, database_latency_ms=latency_ms)

    if latency_ms > MAX_DB_LATENCY_MS:
        return _unavailable("degraded", "Database latency is high", checks)

    return {"status": "ready", "checks": checks, "timestamp": _timestamp()}


@router.get("/live")
def liveness_check():
    """Liveness probe"""
    return {"status": "alive", "uptime_seconds": _uptime(), "timestamp": _timestamp()}


@router.get("/stats")
def health_stats(db: Session = Depends(get_db)):
    """Principal counts per role and session counts by state."""
    now = utcnow()
    try:
        by_role = dict(
            db.query(Principal.role, func.count(Principal.id))
            .filter(Principal.status == PrincipalStatus.ACTIVE)
            .group_by(Principal.role)
            .all()
        )
        total_principals = db.query(Principal).count()
        active_sessions = db.query(AuthSession).filter(
            AuthSession.revoked_at.is_(None),
            AuthSession.expires_at > now,
        ).count()
        revoked_sessions = db.query(AuthSession).filter(AuthSession.revoked_at.isnot(None)).count()
    except SQLAlchemyError as e:
        return _unavailable("error", str(e))

    return {
        "status": "healthy",
        "principals": {
            "total": total_principals,
            "active": sum(by_role.values()),
            "active_by_role": by_role,
        },
        "sessions": {"active": active_sessions, "revoked": revoked_sessions},
        "uptime_seconds": _uptime(),
        "timestamp": _timestamp(),
    }
