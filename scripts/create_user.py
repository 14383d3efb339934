#!/usr/bin/env python3
"""
Create the deployment's user account from environment variables.

Run once after deploying. Running it again resets the password to the
configured one.

Usage:
    python scripts/create_user.py

Environment variables (from .env.development or .env.production):
    INITIAL_USERNAME - Login name for the account
    INITIAL_PASSWORD - Password for the account
"""

import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fintrak.config import get_settings
from fintrak.db.database import get_db_context, init_db
from fintrak.db.models import User
from fintrak.auth.password import hash_password


def create_user():
    """Create the account, or reset its password if it already exists."""
    settings = get_settings()

    if not settings.initial_username or not settings.initial_password:
        print("Error: INITIAL_USERNAME and INITIAL_PASSWORD must be set")
        print("Please configure these in your .env.development or .env.production file")
        sys.exit(1)

    if len(settings.initial_password) < 8:
        print("Error: INITIAL_PASSWORD must be at least 8 characters")
        sys.exit(1)

    init_db()

    username = settings.initial_username.lower()

    with get_db_context() as db:
        existing = db.query(User).filter(User.username == username).first()

        if existing:
            existing.hashed_password = hash_password(settings.initial_password)
            existing.is_active = True
            print(f"Reset password for existing user: {username}")
            return

        db.add(
            User(
                username=username,
                hashed_password=hash_password(settings.initial_password),
                is_active=True,
            )
        )
        print(f"Successfully created user: {username}")
        print("You can now log in at /api/auth/login")


if __name__ == "__main__":
    create_user()
