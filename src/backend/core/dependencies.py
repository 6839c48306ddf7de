"""
Authentication and authorization dependencies for FastAPI.

Users live in the identity service; the bearer token carries everything
this API needs (subject and roles), so no user lookup is done here.
"""

from typing import List
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from core.config import settings
from core.security import (
    SecurityError,
    decode_token,
    get_roles_from_token,
    get_user_id_from_token,
)

# HTTP Bearer security scheme
security = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    """Authenticated caller, built from token claims."""

    id: UUID
    roles: List[str] = []

    def has_role(self, role_name: str) -> bool:
        return role_name.lower() in (role.lower() for role in self.roles)


class AuthenticationError(HTTPException):
    """Custom authentication error."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(HTTPException):
    """Custom authorization error."""

    def __init__(self, detail: str = "Insufficient permissions"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """Get the current authenticated user from the JWT bearer token.

    Raises:
        AuthenticationError: If the token is missing or invalid
    """
    if credentials is None:
        raise AuthenticationError()

    try:
        payload = decode_token(credentials.credentials)
        return CurrentUser(
            id=get_user_id_from_token(payload),
            roles=get_roles_from_token(payload),
        )
    except SecurityError as e:
        raise AuthenticationError(str(e))


async def require_admin(
    user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Require the configured administrator role.

    Raises:
        AuthorizationError: If the user is not an administrator
    """
    if not user.has_role(settings.security.admin_role):
        raise AuthorizationError("Admin role required")
    return user
