"""
Password hashing with bcrypt.
"""

import bcrypt


def hash_password(password: str) -> str:
    """Hash a password with a fresh salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """Check a plain password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed hash or a password bcrypt refuses (over 72 bytes)
        return False
