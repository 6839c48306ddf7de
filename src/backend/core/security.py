"""
Security utilities for JWT token validation.

Tokens are issued by the helpdesk's identity gate. This service verifies
the signature/expiry and reads the subject and role claims.
`create_access_token` mints compatible tokens for tooling and tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID, uuid4

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from core.config import settings


class SecurityError(Exception):
    """Base exception for security-related errors."""

    pass


class TokenExpiredError(SecurityError):
    """Raised when a token has expired."""

    pass


class TokenInvalidError(SecurityError):
    """Raised when a token is invalid."""

    pass


def create_access_token(
    user_id: UUID,
    roles: Iterable[str] = (),
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed access token for a user.

    Args:
        user_id: Subject of the token
        roles: Role names placed in the configured roles claim
        expires_delta: Lifetime (default: 1 hour)

    Returns:
        JWT access token string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=1))

    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "type": "access",
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
        "jti": str(uuid4()),
        settings.security.roles_claim: list(roles),
    }
    if settings.security.jwt_issuer:
        payload["iss"] = settings.security.jwt_issuer
    if settings.security.jwt_audience:
        payload["aud"] = settings.security.jwt_audience

    try:
        return jwt.encode(
            payload,
            settings.security.secret_key,
            algorithm=settings.security.algorithm,
        )
    except Exception as e:
        raise SecurityError(f"Failed to create access token: {str(e)}")


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        TokenExpiredError: If token has expired
        TokenInvalidError: If token is invalid
    """
    try:
        return jwt.decode(
            token,
            settings.security.secret_key,
            algorithms=[settings.security.algorithm],
            audience=settings.security.jwt_audience,
            issuer=settings.security.jwt_issuer,
        )
    except ExpiredSignatureError:
        raise TokenExpiredError("Token has expired")
    except InvalidTokenError as e:
        raise TokenInvalidError(f"Invalid token: {str(e)}")


def get_user_id_from_token(payload: Dict[str, Any]) -> UUID:
    """Extract the user UUID from the `sub` claim.

    Raises:
        TokenInvalidError: If the subject is missing or not a UUID
    """
    subject = payload.get("sub")
    if not subject:
        raise TokenInvalidError("Token has no subject")
    try:
        return UUID(str(subject))
    except ValueError:
        raise TokenInvalidError("Token subject is not a valid user id")


def get_roles_from_token(payload: Dict[str, Any]) -> List[str]:
    """Read role names from the configured claim (list or single string)."""
    roles = payload.get(settings.security.roles_claim) or []
    if isinstance(roles, str):
        return [roles]
    return [str(role) for role in roles]
