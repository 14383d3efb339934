"""
FastAPI dependencies for authentication.
"""

from typing import Optional

from fastapi import Depends, HTTPException, status, Request
from sqlalchemy.orm import Session

from fintrak.db.database import get_db
from fintrak.db.models import User
from fintrak.auth.jwt import ACCESS, decode_token


def get_token_from_request(request: Request) -> Optional[str]:
    """
    Extract the access token from a request.

    The Authorization header (Bearer) wins over the access_token cookie.
    """
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]

    return request.cookies.get("access_token")


async def get_current_user_optional(
    request: Request,
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Get the current user if authenticated, None otherwise."""
    token = get_token_from_request(request)
    if not token:
        return None

    payload = decode_token(token, expected_type=ACCESS)
    if not payload or not payload.get("sub"):
        return None

    return db.query(User).filter(
        User.id == payload["sub"],
        User.is_active == True,
    ).first()


async def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> User:
    """
    Get the current authenticated user.

    Raises HTTPException 401 if not authenticated.
    """
    user = await get_current_user_optional(request, db)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user
