"""Authentication and authorization dependencies.

Access tokens come from the identity provider; only verification happens here.
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status

from src.escrow.api.dependencies.repositories import UserRepo
from src.escrow.core.logging import bind_user_context
from src.escrow.core.security import decode_token
from src.escrow.models import User, UserRole


async def get_current_user(
    user_repo: UserRepo,
    authorization: Annotated[str | None, Header()] = None,
) -> User:
    """Validate the bearer token and return the active user it names."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
        )

    payload = decode_token(authorization[7:])
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    if payload.get("type", "access") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
        )

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user_id in token",
        ) from e

    user = await user_repo.get_by_id(user_id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    bind_user_context(user.id, user.role, user.email)
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def require_admin_role(current_user: CurrentUser) -> User:
    """Require the ADMIN portal role."""
    if current_user.role != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required.",
        )
    return current_user


AdminUser = Annotated[User, Depends(require_admin_role)]


async def require_privileged_role(current_user: CurrentUser) -> User:
    """Require ADMIN or DESIGNER, the roles that may hold verification codes."""
    if current_user.role not in (UserRole.ADMIN.value, UserRole.DESIGNER.value):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin or designer access required.",
        )
    return current_user


PrivilegedUser = Annotated[User, Depends(require_privileged_role)]
