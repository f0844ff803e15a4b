"""Pydantic schemas for authentication.

Request and response models for:
- Signup and login
- Public user profile
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from edumarket.auth.models import User


# ==============================================================================
# Request Schemas
# ==============================================================================


class SignupRequest(BaseModel):
    """User signup request.

    Emptiness and role checks live in AuthService so that every caller gets
    the same errors; the schema only enforces shape.
    """

    full_name: str = Field(..., max_length=200, description="Full name")
    email: str = Field(..., max_length=320, description="Email address (as given)")
    password: str = Field(..., description="Password")
    role: str | None = Field(None, description="admin or consumer (default)")


class LoginRequest(BaseModel):
    """User login request."""

    email: str = Field(..., max_length=320, description="Email address (as given)")
    password: str = Field(..., description="Password")


# ==============================================================================
# Response Schemas
# ==============================================================================


class PublicUser(BaseModel):
    """User as handed to callers. Never carries the password hash or salt."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str
    email: str
    role: str
    is_active: bool
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_user(cls, user: User) -> "PublicUser":
        """Build the public view of a stored user."""
        return cls(**user.to_dict())
