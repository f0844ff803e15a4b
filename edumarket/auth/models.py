"""Database models for authentication.

Cassandra table definitions for:
- Users: Main user table keyed by id
- UsersByEmail: Email claim table, the authoritative uniqueness point

Note: Uses cassandra-driver directly (not ORM).
Tables are created via CQL statements in the database module.
"""

from datetime import datetime
from typing import Any
from uuid import uuid4

from edumarket.auth.permissions import DEFAULT_ROLE
from edumarket.core.clock import ensure_utc_aware, utc_now


# CQL statements for table creation
USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users (
    id TEXT PRIMARY KEY,
    full_name TEXT,
    email TEXT,
    password_hash TEXT,
    password_salt TEXT,
    role TEXT,
    is_active BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Claimed with INSERT ... IF NOT EXISTS before the users row is written
USERS_BY_EMAIL_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users_by_email (
    email TEXT PRIMARY KEY,
    user_id TEXT
)
"""

# All CQL statements for table setup
AUTH_TABLES_CQL = [
    USER_TABLE_CQL,
    USERS_BY_EMAIL_TABLE_CQL,
]


class User:
    """User entity for authentication and authorization.

    Attributes:
        id: Opaque unique identifier (UUID4 string)
        full_name: Display name
        email: Unique email address, kept exactly as registered
        password_hash: PBKDF2 derived key (hex)
        password_salt: Salt the hash was derived with (hex text)
        role: User role (admin, consumer)
        is_active: Account status; inactive users cannot log in
        created_at: Account creation timestamp
        updated_at: Last write timestamp, stamped by the store
    """

    def __init__(
        self,
        id: str | None = None,
        full_name: str = "",
        email: str = "",
        password_hash: str = "",
        password_salt: str = "",
        role: str = DEFAULT_ROLE.value,
        is_active: bool = True,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or str(uuid4())
        self.full_name = full_name
        self.email = email
        self.password_hash = password_hash
        self.password_salt = password_salt
        self.role = role
        self.is_active = is_active
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "User":
        """Create User instance from Cassandra row."""
        return cls(
            id=row.id,
            full_name=row.full_name,
            email=row.email,
            password_hash=row.password_hash,
            password_salt=row.password_salt,
            role=row.role,
            is_active=row.is_active,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def touch(self) -> None:
        """Stamp updated_at with the current time."""
        self.updated_at = utc_now()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary without credential fields."""
        return {
            "id": self.id,
            "full_name": self.full_name,
            "email": self.email,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<User {self.id} role={self.role}>"
