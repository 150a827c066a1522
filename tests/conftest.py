"""Pytest configuration and fixtures"""
import os
from datetime import datetime, timedelta
from typing import Callable, Dict, Generator

# Must be set before the application modules read their settings
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("ARGON2_TIME_COST", "1")
os.environ.setdefault("ARGON2_MEMORY_COST", "1024")
os.environ.setdefault("ARGON2_PARALLELISM", "1")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from principal_auth.config import Settings
from principal_auth.database import Base, get_db
from principal_auth.main import app
from principal_auth.services.auth_service import AuthService
from principal_auth.utils.security import utcnow

# In-memory SQLite shared by every connection of the test engine
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FrozenClock:
    """Clock that only moves when told to"""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(utcnow().replace(microsecond=0))


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def service(test_settings: Settings, clock: FrozenClock) -> AuthService:
    return AuthService(test_settings, clock)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session, service: AuthService) -> Generator[TestClient, None, None]:
    """Create test client with database session and clock overrides"""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    original_service = app.state.auth_service
    app.state.auth_service = service
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    app.state.auth_service = original_service


@pytest.fixture
def member_data() -> dict:
    """Sample join payload"""
    return {
        "email": "alice@example.com",
        "password": "correct-horse-battery",
        "display_name": "Alice",
    }


@pytest.fixture
def register(client: TestClient) -> Callable[..., dict]:
    """Join a principal over HTTP and return the response body"""

    def _register(role: str = "member", email: str = "alice@example.com", password: str = "correct-horse-battery") -> dict:
        response = client.post(f"/auth/{role}/join", json={"email": email, "password": password})
        assert response.status_code == 201, response.text
        return response.json()

    return _register


def bearer(access_token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def auth_headers() -> Callable[[str], Dict[str, str]]:
    """Build an Authorization header from an access token"""
    return bearer
