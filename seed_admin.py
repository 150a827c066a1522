"""
Admin seed script: creates the first admin principal directly in the database.

Use it when ``admin`` is not in SELF_REGISTRATION_ROLES:
    python seed_admin.py --email admin@example.com --password 'ChangeMe123!'

ADMIN_EMAIL / ADMIN_PASSWORD environment variables are used when the flags
are omitted. Exits non-zero if the admin already exists.
"""
import argparse
import os
import sys

from principal_auth import models  # noqa: F401
from principal_auth.config import settings
from principal_auth.database import Base, SessionLocal, engine
from principal_auth.errors import DuplicateIdentifier
from principal_auth.schemas.auth import PASSWORD_MIN_LENGTH
from principal_auth.services.auth_service import AuthService


def main() -> int:
    parser = argparse.ArgumentParser(description="Create the first admin principal")
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL"))
    parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD"))
    parser.add_argument("--display-name", default="Administrator")
    args = parser.parse_args()

    if not args.email or not args.password:
        parser.error("--email and --password (or ADMIN_EMAIL / ADMIN_PASSWORD) are required")
    if len(args.password) < PASSWORD_MIN_LENGTH:
        parser.error(f"password must be at least {PASSWORD_MIN_LENGTH} characters")

    if settings.AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=engine)

    service = AuthService(settings)
    db = SessionLocal()
    try:
        result = service.join(
            db,
            settings.ADMIN_ROLE,
            args.email,
            args.password,
            display_name=args.display_name,
        )
        print(f"  Created {settings.ADMIN_ROLE} {result.principal.email} (id: {result.principal.id})")
    except DuplicateIdentifier:
        print(f"  ERROR: {settings.ADMIN_ROLE} {args.email} already exists")
        return 1
    finally:
        db.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
