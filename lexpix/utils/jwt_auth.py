"""
JWT token utilities for admin sessions.
Tokens travel in the httpOnly ``cms_token`` cookie (preferred) or an
``Authorization: Bearer`` header.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import Request

from lexpix.config import settings

ALGORITHM = "HS256"
COOKIE_NAME = "cms_token"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Dictionary of claims to include in token
        expires_delta: Optional custom expiration time

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({
        "exp": expire,
        "iat": datetime.now(timezone.utc),
        "type": "access"
    })

    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """
    Verify and decode a JWT token.

    Returns:
        dict: Decoded payload, or None if the token is invalid, expired or
        not an access token
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None

    if payload.get("type") != "access":
        return None
    return payload


def token_from_request(request: Request) -> Optional[str]:
    """Read the session token from the cookie, falling back to the Authorization header."""
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token

    authorization = request.headers.get("authorization")
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    return None
