# Auth module
from edumarket.auth.models import User
from edumarket.auth.permissions import UserRole
from edumarket.auth.schemas import LoginRequest, PublicUser, SignupRequest


__all__ = [
    "LoginRequest",
    "PublicUser",
    "SignupRequest",
    "User",
    "UserRole",
]
