#!/usr/bin/env python3
"""Create the admin user from ADMIN_EMAIL / ADMIN_PASSWORD."""

import sys

from woodland.config import settings
from woodland.database import SessionLocal
from woodland.security.passwords import password_problems
from woodland.services.user_service import user_service


def create_admin_user() -> int:
    """Create the admin user if it doesn't exist. Returns a process exit code."""
    if not (settings.admin_email and settings.admin_password):
        print("ADMIN_EMAIL and ADMIN_PASSWORD must be set", file=sys.stderr)
        return 2
    problems = password_problems(settings.admin_password)
    if problems:
        print(f"Admin password rejected: {problems[0]}", file=sys.stderr)
        return 2

    with SessionLocal() as db:
        created = user_service.ensure_admin(
            db, settings.admin_email, settings.admin_password, settings.admin_name
        )
    if created:
        print(f"Created admin user: {settings.admin_email}")
    else:
        print(f"Admin user '{settings.admin_email}' already exists")
    return 0


if __name__ == "__main__":
    sys.exit(create_admin_user())
