"""Identity store.

UserStore is the persistence contract AuthService depends on;
CassandraUserStore implements it on two tables. Email uniqueness is claimed in
``users_by_email`` with a lightweight transaction before the ``users`` row is
written.
"""

from typing import Protocol

import structlog

from edumarket.auth.models import User
from edumarket.core.database.cassandra import CassandraStore


logger = structlog.get_logger(__name__)


class DuplicateEmailError(Exception):
    """Email is already claimed by another user."""

    def __init__(self, email: str):
        super().__init__("email already registered")
        self.email = email


class UserStore(Protocol):
    """Lookup and write contract for users."""

    def find_by_email(self, email: str) -> User | None: ...

    def find_by_id(self, user_id: str) -> User | None: ...

    def insert(self, user: User) -> User:
        """Persist a new user. Raises DuplicateEmailError if email is taken."""
        ...

    def update(self, user: User) -> User:
        """Persist mutable fields (full_name, role, is_active)."""
        ...


class CassandraUserStore(CassandraStore):
    """UserStore backed by Cassandra."""

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for better performance."""
        self._get_user_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users WHERE id = ?"
        )
        self._get_email_claim = self.session.prepare(
            f"SELECT user_id FROM {self.keyspace}.users_by_email WHERE email = ?"
        )
        self._claim_email = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.users_by_email (email, user_id)
            VALUES (?, ?)
            IF NOT EXISTS
        """)
        self._release_email = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.users_by_email
            WHERE email = ?
            IF user_id = ?
        """)
        self._insert_user = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.users
            (id, full_name, email, password_hash, password_salt, role, is_active,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_user = self.session.prepare(f"""
            UPDATE {self.keyspace}.users
            SET full_name = ?, role = ?, is_active = ?, updated_at = ?
            WHERE id = ?
        """)

    def find_by_id(self, user_id: str) -> User | None:
        row = self._execute(self._get_user_by_id, [user_id]).one()
        return User.from_row(row) if row else None

    def find_by_email(self, email: str) -> User | None:
        claim = self._execute(self._get_email_claim, [email]).one()
        if not claim:
            return None
        return self.find_by_id(claim.user_id)

    def insert(self, user: User) -> User:
        result = self._execute(self._claim_email, [user.email, user.id])
        if not result.was_applied:
            raise DuplicateEmailError(user.email)

        user.touch()
        try:
            self._execute(
                self._insert_user,
                [
                    user.id,
                    user.full_name,
                    user.email,
                    user.password_hash,
                    user.password_salt,
                    user.role,
                    user.is_active,
                    user.created_at,
                    user.updated_at,
                ],
            )
        except Exception:
            # Free the email so a retry can claim it again
            self._execute(self._release_email, [user.email, user.id])
            logger.warning("email_claim_released", user_id=user.id)
            raise

        return user

    def update(self, user: User) -> User:
        user.touch()
        self._execute(
            self._update_user,
            [user.full_name, user.role, user.is_active, user.updated_at, user.id],
        )
        return user
