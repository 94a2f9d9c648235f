"""JWT token creation and validation utilities.

Uses python-jose for HS256 bearer tokens. The signing secret comes from
settings (SCHEDULED_RESEARCH_JWT_SECRET_KEY, falling back to JWT_SECRET_KEY);
without one no token can be issued or verified.
"""
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel

from ...core.config import settings


class TokenData(BaseModel):
    """Data extracted from a validated JWT token."""

    sub: str  # Subject (the caller: a user or the cron scheduler)
    exp: Optional[datetime] = None
    scopes: list[str] = []


def _secret_key() -> Optional[str]:
    return settings.jwt_secret_key or os.getenv("JWT_SECRET_KEY")


def create_access_token(
    subject: str,
    scopes: Optional[list[str]] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        subject: The subject of the token (user name or "scheduler")
        scopes: Optional list of permission scopes
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string

    Raises:
        ValueError: If no signing secret is configured
    """
    secret = _secret_key()
    if not secret:
        raise ValueError("JWT secret key is not configured")

    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)

    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "exp": now + expires_delta,
        "iat": now,
        "scopes": scopes or [],
    }

    return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> TokenData:
    """
    Verify and decode a JWT token.

    Args:
        token: The JWT token string to verify

    Returns:
        TokenData with the decoded token information

    Raises:
        JWTError: If the token is invalid, expired, or no secret is configured
    """
    secret = _secret_key()
    if not secret:
        raise JWTError("JWT secret key is not configured")

    payload = jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])

    sub = payload.get("sub")
    if sub is None:
        raise JWTError("Token missing subject claim")

    exp = payload.get("exp")
    exp_datetime = datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None

    return TokenData(sub=str(sub), exp=exp_datetime, scopes=payload.get("scopes", []))
