"""FastAPI application entry point"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded

from principal_auth import __version__, models  # noqa: F401  (registers tables on Base)
from principal_auth.api import health
from principal_auth.api.admin import build_admin_router
from principal_auth.api.auth import build_auth_router
from principal_auth.config import Settings, settings
from principal_auth.database import Base, engine
from principal_auth.errors import AuthError
from principal_auth.middleware.monitoring import MonitoringMiddleware
from principal_auth.middleware.rate_limit import limiter
from principal_auth.services.auth_service import AuthService
from principal_auth.utils.logger import logger, setup_logging


def create_app(app_settings: Settings) -> FastAPI:
    """Build the application for one immutable Settings object"""
    setup_logging(app_settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler"""
        if app_settings.AUTO_CREATE_TABLES:
            Base.metadata.create_all(bind=engine)
        logger.info("principal-auth starting up", extra={"action": "startup"})
        yield
        logger.info("principal-auth shutting down", extra={"action": "shutdown"})

    app = FastAPI(
        title="principal-auth",
        description="Credential verification, JWT issuance, refresh rotation and session revocation",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    # Fails fast on signing misconfiguration
    app.state.auth_service = AuthService(app_settings)
    limiter.enabled = app_settings.RATE_LIMIT_ENABLED
    app.state.limiter = limiter

    # ===== Middleware Setup =====

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if app_settings.METRICS_ENABLED:
        app.add_middleware(MonitoringMiddleware)

        instrumentator = Instrumentator(
            should_group_status_codes=True,
            should_ignore_untemplated=True,
            excluded_handlers=["/metrics", "/health", "/health/ready", "/health/live"],
        )
        instrumentator.instrument(app)
        instrumentator.expose(app, endpoint=app_settings.METRICS_PATH, include_in_schema=False)

    # ===== Error Handlers =====

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        """Render auth errors as {"error": code, "message": text}"""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"{exc.error_code}: {exc.message}",
            extra={"action": "auth_error", "reason": exc.error_code, "request_id": getattr(request.state, "request_id", None)},
        )
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.error_code, "message": exc.message},
            headers=headers,
        )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        """Handle rate limit exceeded errors"""
        logger.warning("Rate limit exceeded", extra={"action": "rate_limited"})
        return JSONResponse(
            status_code=429,
            content={
                "error": "rate_limit_exceeded",
                "message": "Too many requests. Please try again later.",
                "detail": str(exc.detail),
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for uncaught errors"""
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_error",
                "message": "An unexpected error occurred. Please contact support.",
            },
        )

    # ===== Route Setup =====

    app.include_router(health.router)
    for role in app_settings.PRINCIPAL_ROLES:
        app.include_router(
            build_auth_router(role, self_registration=role in app_settings.SELF_REGISTRATION_ROLES)
        )
    app.include_router(build_admin_router(app_settings.ADMIN_ROLE))

    @app.get("/")
    def root():
        """Root endpoint"""
        return {
            "service": "principal-auth",
            "version": __version__,
            "status": "operational",
            "roles": app_settings.PRINCIPAL_ROLES,
            "docs": "/docs",
            "health": "/health",
            "metrics": app_settings.METRICS_PATH if app_settings.METRICS_ENABLED else None,
        }

    return app


app = create_app(settings)
