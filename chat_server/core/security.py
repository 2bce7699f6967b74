"""
Security utilities for authentication.

Bearer tokens are issued by the external identity provider and signed with the
shared secret from settings. The only claim the server relies on is the
stable subject identifier ("sub").
"""
import jwt
from datetime import timedelta
from typing import Optional, Dict, Any

from chat_server.config import settings
from chat_server.core.exceptions import UnauthenticatedError
from chat_server.utils.datetime_utils import utc_now


class SecurityException(UnauthenticatedError):
    """Raised when a bearer token is missing, malformed, expired or forged."""
    pass


def create_access_token(
    subject: str,
    extra_claims: Optional[Dict[str, Any]] = None,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed JWT for a subject.

    Used by tests and local tooling; production tokens come from the
    identity provider.

    Args:
        subject: External subject identifier
        extra_claims: Additional claims (email, name, ...)
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token
    """
    now = utc_now()
    expire = now + (expires_delta or timedelta(hours=settings.jwt_expiration_hours))

    to_encode: Dict[str, Any] = dict(extra_claims or {})
    to_encode.update({"sub": subject, "exp": expire, "iat": now})
    if settings.jwt_audience:
        to_encode["aud"] = settings.jwt_audience

    return jwt.encode(
        to_encode,
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm
    )


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        SecurityException: If token is invalid or expired
    """
    options = {"verify_aud": bool(settings.jwt_audience)}
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience or None,
            options=options,
        )
    except jwt.ExpiredSignatureError:
        raise SecurityException("Token has expired")
    except jwt.InvalidTokenError:
        raise SecurityException("Invalid token")


def extract_subject(token: str) -> str:
    """Return the external subject identifier carried by a token."""
    payload = decode_token(token)
    subject = payload.get("sub")
    if not subject:
        raise SecurityException("Token missing subject claim")
    return str(subject)


def extract_token_from_header(authorization: str) -> str:
    """
    Extract token from an Authorization header.

    Args:
        authorization: Header value ("Bearer <token>")

    Returns:
        Token string

    Raises:
        SecurityException: If the header format is invalid
    """
    if not authorization:
        raise SecurityException("Missing authorization header")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise SecurityException("Invalid authorization header format. Expected: Bearer <token>")

    return parts[1]
