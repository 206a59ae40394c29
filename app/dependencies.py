"""
Mataam Back Office - FastAPI Dependencies

Authentication and role checks shared by the routers.

Users are created by the identity service; requests carry its HS256 access
token either as `Authorization: Bearer <token>` or in the `access_token`
cookie set by the web client.
"""

import uuid
from typing import List, Optional

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.models.user import User, UserRole
from app.utils.security import verify_access_token


security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _token_from_request(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    """Bearer header first, then the access_token cookie."""
    if credentials:
        return credentials.credentials
    cookie = request.cookies.get("access_token")
    if cookie and cookie.startswith("Bearer "):
        return cookie[7:]
    return cookie


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_async_session),
) -> User:
    """
    Resolve the user behind the request's access token.

    Raises:
        HTTPException 401: missing, invalid or expired token, or unknown user
        HTTPException 403: the user has been deactivated
    """
    token = _token_from_request(request, credentials)
    if not token:
        raise _unauthorized("Not authenticated")

    payload = verify_access_token(token)
    if not payload or not payload.get("sub"):
        raise _unauthorized("Invalid or expired token")

    try:
        user_id = uuid.UUID(str(payload["sub"]))
    except ValueError:
        raise _unauthorized("Invalid user ID in token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )
    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """Current user; deactivated accounts never get this far."""
    return current_user


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory restricting an endpoint to some roles.

    Usage:
        @router.get("")
        async def admin_only(user: User = Depends(require_role([UserRole.ADMIN]))):
            ...
    """
    async def role_checker(
        current_user: User = Depends(get_current_active_user),
    ) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{current_user.role.name}' is not allowed to perform this action",
            )
        return current_user

    return role_checker
