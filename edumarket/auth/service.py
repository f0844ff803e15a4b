"""Authentication service layer.

Business logic for:
- User signup and login
- User lookup and deactivation

Key derivation is CPU-bound and runs on a worker thread so it never blocks
the event loop.
"""

import asyncio
from collections.abc import Callable
from uuid import uuid4

import structlog

from edumarket.auth.models import User
from edumarket.auth.permissions import parse_role
from edumarket.auth.schemas import PublicUser
from edumarket.auth.security import CredentialEngine
from edumarket.auth.store import DuplicateEmailError, UserStore
from edumarket.core.errors import (
    AccountDeactivatedError,
    EmailTakenError,
    InvalidCredentialsError,
    InvalidRoleError,
    NotFoundError,
    ValidationError,
)


logger = structlog.get_logger(__name__)


def _missing_fields(**values: str | None) -> list[str]:
    return [name for name, value in values.items() if not value or not value.strip()]


class AuthService:
    """Signup, login and user queries over a UserStore."""

    def __init__(
        self,
        store: UserStore,
        credentials: CredentialEngine,
        id_factory: Callable[[], str] | None = None,
    ):
        """Initialize the service.

        Args:
            store: Identity store adapter
            credentials: Password hashing engine
            id_factory: Generates new user ids (UUID4 strings by default)
        """
        self.store = store
        self.credentials = credentials
        self._id_factory = id_factory or (lambda: str(uuid4()))

    async def signup(
        self,
        full_name: str,
        email: str,
        password: str,
        role: str | None = None,
    ) -> PublicUser:
        """Register a new user.

        Raises:
            ValidationError: If full_name, email or password is empty
            InvalidRoleError: If role is not admin or consumer
            EmailTakenError: If the email is already registered
        """
        missing = _missing_fields(full_name=full_name, email=email)
        if not password:
            missing.append("password")
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}", fields=missing
            )

        user_role = parse_role(role)
        if user_role is None:
            raise InvalidRoleError

        if self.store.find_by_email(email) is not None:
            raise EmailTakenError

        password_hash = await asyncio.to_thread(self.credentials.hash, password)

        user = User(
            id=self._id_factory(),
            full_name=full_name.strip(),
            email=email,
            password_hash=password_hash.hash,
            password_salt=password_hash.salt,
            role=user_role.value,
        )

        try:
            self.store.insert(user)
        except DuplicateEmailError as e:
            # Lost the race between the pre-check and the claim
            logger.info("signup_email_race_lost")
            raise EmailTakenError from e

        logger.info("user_signed_up", user_id=user.id, role=user.role)
        return PublicUser.from_user(user)

    async def login(self, email: str, password: str) -> PublicUser:
        """Authenticate a user by email and password.

        Absent accounts and wrong passwords give the same error and cost the
        same derivation time. Deactivation is reported only after the password
        has been verified.

        Raises:
            ValidationError: If email or password is empty
            InvalidCredentialsError: If email or password is wrong
            AccountDeactivatedError: If the account is deactivated
        """
        missing = _missing_fields(email=email)
        if not password:
            missing.append("password")
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}", fields=missing
            )

        user = self.store.find_by_email(email)
        if user is None:
            await asyncio.to_thread(self.credentials.simulate_verify, password)
            logger.info("login_failed", reason="invalid_credentials")
            raise InvalidCredentialsError

        valid = await asyncio.to_thread(
            self.credentials.verify, password, user.password_hash, user.password_salt
        )
        if not valid:
            logger.info("login_failed", reason="invalid_credentials")
            raise InvalidCredentialsError

        if not user.is_active:
            logger.info("login_failed", reason="deactivated", user_id=user.id)
            raise AccountDeactivatedError

        logger.info("user_logged_in", user_id=user.id)
        return PublicUser.from_user(user)

    async def get_user_by_id(self, user_id: str) -> PublicUser:
        """Get an active user by id.

        Raises:
            NotFoundError: If no user has this id
            AccountDeactivatedError: If the user is deactivated
        """
        user = self.store.find_by_id(user_id) if user_id else None
        if user is None:
            raise NotFoundError("User not found")
        if not user.is_active:
            raise AccountDeactivatedError
        return PublicUser.from_user(user)

    async def deactivate_user(self, user_id: str) -> PublicUser:
        """Deactivate a user account. Deactivating twice is a no-op.

        Raises:
            NotFoundError: If no user has this id
        """
        user = self.store.find_by_id(user_id) if user_id else None
        if user is None:
            raise NotFoundError("User not found")

        if user.is_active:
            user.is_active = False
            self.store.update(user)
            logger.info("user_deactivated", user_id=user.id)

        return PublicUser.from_user(user)
