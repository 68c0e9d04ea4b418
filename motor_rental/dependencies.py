"""FastAPI dependencies for authentication and authorization."""

import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from .auth import verify_token
from .crud import select_user
from .logger import logger
from .models import User
from .schemas import ErrorCode


# ==================== Authentication Dependencies ====================

# auto_error=False so a missing header gets the same 401 as a bad token
security = HTTPBearer(auto_error=False)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "error": ErrorCode.UNAUTHORIZED,
            "message": "Authentication required",
            "details": {}
        },
        headers={"WWW-Authenticate": "Bearer"},
    )


async def resolve_identity(credentials: HTTPAuthorizationCredentials | None) -> User | None:
    """Map bearer credentials to an existing user, or None.

    A missing header, a non-Bearer scheme, a forged or expired token, and a
    token for a deleted user are indistinguishable to the caller.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    user_id = verify_token(credentials.credentials)
    if user_id is None:
        return None
    return await select_user(user_id)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User:
    """Authenticated user for the request. Raises 401 otherwise."""
    user = await resolve_identity(credentials)
    if user is None:
        logger.debug("Rejected request with missing or invalid bearer token")
        raise _unauthorized()
    return user


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User | None:
    """Authenticated user if the request carries a valid token, else None."""
    return await resolve_identity(credentials)


# ==================== Authorization Helpers ====================

async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Restrict an endpoint to accounts with the admin role."""
    if not current_user.is_admin:
        logger.warning(f"Admin-only endpoint refused for user id={current_user.id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": ErrorCode.FORBIDDEN,
                "message": "Administrator role required",
                "details": {}
            },
        )
    return current_user


def ensure_owner_or_admin(current_user: User, owner_id: uuid.UUID) -> None:
    """Raise 403 unless the caller owns the resource or is an admin."""
    if current_user.id == owner_id or current_user.is_admin:
        return
    logger.warning(f"User id={current_user.id} denied access to resource owned by id={owner_id}")
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={
            "error": ErrorCode.FORBIDDEN,
            "message": "You do not have access to this resource",
            "details": {}
        },
    )
