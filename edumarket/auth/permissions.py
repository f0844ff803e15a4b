"""User roles for edumarket.

- ADMIN: Publishes courses and content, confirms payments and refunds
- CONSUMER: Browses, purchases and views enrolled courses
"""

from enum import Enum


class UserRole(str, Enum):
    """Supported user roles."""

    ADMIN = "admin"
    CONSUMER = "consumer"


DEFAULT_ROLE = UserRole.CONSUMER


def parse_role(role: "UserRole | str | None") -> UserRole | None:
    """Resolve a role value, returning None when it is not supported.

    None (role omitted) resolves to the default role.

    Examples:
        >>> parse_role(None)
        <UserRole.CONSUMER: 'consumer'>
        >>> parse_role("admin")
        <UserRole.ADMIN: 'admin'>
        >>> parse_role("instructor") is None
        True
    """
    if role is None:
        return DEFAULT_ROLE
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        return None


def is_admin(role: UserRole | str) -> bool:
    """Check if role is ADMIN."""
    if isinstance(role, str):
        return role == UserRole.ADMIN.value
    return role == UserRole.ADMIN
