"""
Security utilities for GeoPulse.
Verifies the bearer tokens issued by the managed auth provider.
"""

from typing import Optional, Dict, Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from .config import Settings, get_settings_dependency
from .exceptions import ConfigurationError


# Security scheme
security = HTTPBearer(auto_error=False)


class AuthenticationException(HTTPException):
    """Authentication failed."""
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"}
        )


def verify_access_token(token: str, settings: Settings) -> Optional[Dict[str, Any]]:
    """
    Verify and decode an access token.

    Args:
        token: Raw JWT from the Authorization header
        settings: Application settings holding the signing secret

    Returns:
        Decoded claims, or None if the token is invalid or expired

    Raises:
        ConfigurationError: If no signing secret is configured
    """
    if not settings.JWT_SECRET:
        raise ConfigurationError("JWT_SECRET not configured")

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except JWTError:
        return None

    if not payload.get("sub"):
        return None
    return payload


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings_dependency),
) -> str:
    """
    Require a valid bearer token and return its user id.

    Raises:
        AuthenticationException: If the header is missing or the token is invalid
    """
    if not credentials:
        raise AuthenticationException("Authentication required")

    payload = verify_access_token(credentials.credentials, settings)
    if payload is None:
        raise AuthenticationException("Invalid or expired authentication token")

    return payload["sub"]


def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings_dependency),
) -> Optional[str]:
    """User id when a valid token is sent, None for anonymous callers."""
    if not credentials or not settings.JWT_SECRET:
        return None

    payload = verify_access_token(credentials.credentials, settings)
    return payload["sub"] if payload else None
