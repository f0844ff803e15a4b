"""FastAPI dependencies for authentication.

Provides dependency injection for:
- The AuthService instance
- Current user resolution from the gateway identity header
- Role-based access control
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from edumarket.auth.permissions import is_admin
from edumarket.auth.schemas import PublicUser
from edumarket.auth.service import AuthService
from edumarket.config.settings import get_settings
from edumarket.core.context import set_user_id
from edumarket.core.errors import AccountDeactivatedError, NotFoundError


# ==============================================================================
# Service Getter (set by main.py)
# ==============================================================================

_auth_service_getter: Callable[[], AuthService] | None = None


def set_auth_service_getter(getter: Callable[[], AuthService]) -> None:
    """Set the auth service getter function.

    Called by main.py during app initialization.
    """
    global _auth_service_getter  # noqa: PLW0603 - Required for DI pattern
    _auth_service_getter = getter


def get_auth_service() -> AuthService:
    """Get AuthService instance.

    Uses the getter function set by main.py at startup.
    """
    if _auth_service_getter is None:
        msg = "AuthService not configured - call set_auth_service_getter first"
        raise RuntimeError(msg)
    return _auth_service_getter()


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


# ==============================================================================
# Current User
# ==============================================================================


def get_user_id_from_header(request: Request) -> str | None:
    """Extract the caller's user id from the identity header.

    The header is set by the upstream gateway after it authenticates the
    request. Its name comes from settings.auth_user_header.
    """
    value = request.headers.get(get_settings().auth_user_header)
    if value is None:
        return None
    return value.strip() or None


async def get_current_user(
    user_id: Annotated[str | None, Depends(get_user_id_from_header)],
    auth_service: AuthServiceDep,
) -> PublicUser:
    """Resolve the current user.

    Raises:
        HTTPException(401): If the header is missing or the user does not exist
        HTTPException(403): If the user is deactivated
    """
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    try:
        user = await auth_service.get_user_by_id(user_id)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        ) from e
    except AccountDeactivatedError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=e.message,
        ) from e

    # Set user_id in context for logging
    set_user_id(user.id)
    return user


async def require_admin(
    user: Annotated[PublicUser, Depends(get_current_user)],
) -> PublicUser:
    """Require the current user to be an admin.

    Raises:
        HTTPException(403): If the user is not an admin
    """
    if not is_admin(user.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return user


# ==============================================================================
# Type Aliases for Dependencies
# ==============================================================================

CurrentUser = Annotated[PublicUser, Depends(get_current_user)]
AdminUser = Annotated[PublicUser, Depends(require_admin)]
