"""Application configuration"""
from typing import List

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings

    Loaded once at process start and passed explicitly into the auth
    components. Instances are frozen.
    """

    # Database
    DATABASE_URL: str = "sqlite:///./principal_auth.db"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_POOL_RECYCLE: int = 3600  # Recycle connections after 1 hour
    AUTO_CREATE_TABLES: bool = True    # Disable when schema is managed by alembic

    # Principals
    PRINCIPAL_ROLES: List[str] = ["member", "admin", "moderator", "seller"]
    SELF_REGISTRATION_ROLES: List[str] = ["member", "admin", "moderator", "seller"]
    ADMIN_ROLE: str = "admin"

    # JWT
    JWT_SECRET: str = "dev-secret-change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "principal-auth"
    ACCESS_TOKEN_EXPIRE_SECONDS: int = 3600           # 1 hour
    REFRESH_TOKEN_EXPIRE_SECONDS: int = 7 * 24 * 3600  # 7 days

    # Credentials
    MAX_FAILED_LOGIN_ATTEMPTS: int = 5  # 0 disables lockout
    LOCKOUT_SECONDS: int = 900
    ARGON2_TIME_COST: int = 3
    ARGON2_MEMORY_COST: int = 65536  # KiB
    ARGON2_PARALLELISM: int = 4

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: List[str] = ["100/minute", "1000/hour"]
    RATE_LIMIT_STORAGE_URI: str = "memory://"  # Use redis:// for production

    # Monitoring
    METRICS_ENABLED: bool = True
    METRICS_PATH: str = "/metrics"

    class Config:
        env_file = ".env"
        case_sensitive = True
        frozen = True

    @model_validator(mode="after")
    def _check_token_windows(self) -> "Settings":
        if not self.JWT_SECRET:
            raise ValueError("JWT_SECRET must be set")
        if self.ACCESS_TOKEN_EXPIRE_SECONDS <= 0:
            raise ValueError("ACCESS_TOKEN_EXPIRE_SECONDS must be positive")
        if self.ACCESS_TOKEN_EXPIRE_SECONDS >= self.REFRESH_TOKEN_EXPIRE_SECONDS:
            raise ValueError(
                "ACCESS_TOKEN_EXPIRE_SECONDS must be shorter than REFRESH_TOKEN_EXPIRE_SECONDS"
            )
        if self.ADMIN_ROLE not in self.PRINCIPAL_ROLES:
            raise ValueError(f"ADMIN_ROLE '{self.ADMIN_ROLE}' is not one of PRINCIPAL_ROLES")
        return self

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


settings = Settings()
