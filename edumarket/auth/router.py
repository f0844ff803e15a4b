"""Authentication API endpoints.

Provides routes for:
- Signup and login
- Current user profile
- Admin user lookup and deactivation

Domain errors (AppError) propagate to the application's exception handler,
which maps each error code to an HTTP status.
"""

from fastapi import APIRouter, status

from edumarket.auth.dependencies import AdminUser, AuthServiceDep, CurrentUser
from edumarket.auth.schemas import LoginRequest, PublicUser, SignupRequest


router = APIRouter(prefix="/v1/auth", tags=["auth"])


# ==============================================================================
# Public Endpoints
# ==============================================================================


@router.post(
    "/signup",
    response_model=PublicUser,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    responses={
        409: {"description": "Email already registered"},
        422: {"description": "Missing fields or invalid role"},
    },
)
async def signup(data: SignupRequest, auth_service: AuthServiceDep) -> PublicUser:
    """Register a new user account. Role defaults to consumer."""
    return await auth_service.signup(
        full_name=data.full_name,
        email=data.email,
        password=data.password,
        role=data.role,
    )


@router.post(
    "/login",
    response_model=PublicUser,
    summary="User login",
    responses={
        401: {"description": "Invalid credentials"},
        403: {"description": "Account deactivated"},
    },
)
async def login(data: LoginRequest, auth_service: AuthServiceDep) -> PublicUser:
    """Verify credentials and return the user's public profile."""
    return await auth_service.login(data.email, data.password)


# ==============================================================================
# Authenticated Endpoints
# ==============================================================================


@router.get("/me", response_model=PublicUser, summary="Current user profile")
async def me(user: CurrentUser) -> PublicUser:
    return user


@router.get(
    "/users/{user_id}",
    response_model=PublicUser,
    summary="Get user (admin)",
    responses={
        403: {"description": "User is deactivated or caller is not admin"},
        404: {"description": "User not found"},
    },
)
async def get_user(
    user_id: str, _admin: AdminUser, auth_service: AuthServiceDep
) -> PublicUser:
    return await auth_service.get_user_by_id(user_id)


@router.post(
    "/users/{user_id}/deactivate",
    response_model=PublicUser,
    summary="Deactivate user (admin)",
    responses={404: {"description": "User not found"}},
)
async def deactivate_user(
    user_id: str, _admin: AdminUser, auth_service: AuthServiceDep
) -> PublicUser:
    """Deactivate an account. The user can no longer log in."""
    return await auth_service.deactivate_user(user_id)
