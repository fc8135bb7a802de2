"""Authentication utilities for the LockerDrop backend.

Callers authenticate with a bearer JWT. The ``sub`` claim is the account
ID; optional ``wallet`` and ``email`` claims are aliases that may appear
in a job's party fields. All three resolve into one ``Actor``.
"""

from datetime import datetime, timedelta, timezone
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from lockerdrop.identity import Actor

from .config import Settings, get_settings

# Cookie name for httpOnly auth
AUTH_COOKIE_NAME = "lockerdrop_auth"

# Make bearer optional to allow cookie fallback
security = HTTPBearer(auto_error=False)


def create_access_token(
    subject: str,
    settings: Settings,
    wallet: str | None = None,
    email: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token for a marketplace user."""
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)

    to_encode = {
        "sub": subject,
        "exp": expire,
        "iat": datetime.now(timezone.utc),
        "type": "access",
    }
    if wallet:
        to_encode["wallet"] = wallet
    if email:
        to_encode["email"] = email
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> dict:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        return payload
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def actor_from_payload(payload: dict) -> Actor:
    """Build an Actor from decoded token claims."""
    subject = payload.get("sub")
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Actor(id=subject, wallet=payload.get("wallet"), email=payload.get("email"))


def _extract_token(credentials: HTTPAuthorizationCredentials | None, request: Request) -> str | None:
    if credentials:
        return credentials.credentials
    return request.cookies.get(AUTH_COOKIE_NAME)


async def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
    request: Request,
) -> Actor:
    """Resolve the authenticated caller from the Authorization header or cookie."""
    token = _extract_token(credentials, request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated - provide Authorization header or auth cookie",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return actor_from_payload(decode_token(token, settings))


async def get_optional_actor(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
    request: Request,
) -> Actor | None:
    """Like get_current_actor, but anonymous callers get None.

    A token that is present but invalid is still rejected.
    """
    token = _extract_token(credentials, request)
    if not token:
        return None
    return actor_from_payload(decode_token(token, settings))


# Type aliases for dependency injection
CurrentActor = Annotated[Actor, Depends(get_current_actor)]
OptionalActor = Annotated[Actor | None, Depends(get_optional_actor)]
