"""
JWT token utilities using python-jose.
"""

import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Optional, Dict, Any

from jose import jwt, JWTError

from fintrak.config import get_settings

settings = get_settings()

ACCESS = "access"
REFRESH = "refresh"


def _encode(data: Dict[str, Any], token_type: str, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    to_encode.update({
        "exp": datetime.utcnow() + expires_delta,
        "type": token_type,
        # Unique per token so two tokens minted in the same second differ
        "jti": secrets.token_hex(8),
    })
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a short-lived access token.

    Args:
        data: Payload data (must include 'sub' for the user id)
        expires_delta: Optional custom expiration time
    """
    return _encode(
        data,
        ACCESS,
        expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes),
    )


def create_refresh_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a long-lived refresh token.

    Args:
        data: Payload data (must include 'sub' for the user id)
        expires_delta: Optional custom expiration time
    """
    return _encode(
        data,
        REFRESH,
        expires_delta or timedelta(days=settings.jwt_refresh_token_expire_days),
    )


def decode_token(token: str, expected_type: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a JWT token.

    Args:
        token: The JWT token string
        expected_type: 'access' or 'refresh' to also check the token type

    Returns:
        Decoded payload dict if valid, None if invalid, expired or of the
        wrong type
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    if expected_type and payload.get("type") != expected_type:
        return None
    return payload


def hash_token(token: str) -> str:
    """SHA-256 hex digest of a token, for storing refresh tokens."""
    return hashlib.sha256(token.encode()).hexdigest()
