"""Security helpers shared by the auth components"""
import hashlib
import uuid
from datetime import datetime, timezone
from typing import Callable

# Returns naive UTC datetimes, matching how DateTime columns are stored
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current UTC time as a naive datetime"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc(value: datetime) -> datetime:
    """Attach UTC tzinfo to a naive UTC datetime (no-op for aware values)"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_timestamp(value: datetime) -> int:
    return int(as_utc(value).timestamp())


def normalize_identifier(identifier: str) -> str:
    """Normalise a login identifier (e-mail) for storage and lookup"""
    return identifier.strip().lower()


def hash_token(token: str) -> str:
    """Hash a refresh token using SHA256; the raw value is never stored"""
    return hashlib.sha256(token.encode()).hexdigest()


def generate_id() -> str:
    """Generate a UUID4 string identifier"""
    return str(uuid.uuid4())
