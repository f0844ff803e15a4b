"""Password hashing and verification.

Passwords are derived with PBKDF2-HMAC over a random per-user salt. The hash
and the salt are stored as separate hex strings. The salt's hex text (not its
raw bytes) is fed to the KDF, so hashes stay interchangeable with accounts
created by the previous system.

The engine is built once at startup from settings. Parameters that would
weaken derivation are rejected there, never per call.
"""

import hashlib
import hmac
import secrets
from collections.abc import Callable
from typing import NamedTuple

from edumarket.config.settings import Settings


MIN_ITERATIONS = 100_000
MIN_DIGEST_BYTES = 64  # 512-bit digest
MIN_SALT_BYTES = 16
MIN_KEY_LENGTH = 32


class CredentialConfigurationError(ValueError):
    """Key derivation parameters are unsafe or unsupported."""


class PasswordHash(NamedTuple):
    """Derived password hash and the salt it was derived with (hex text)."""

    hash: str
    salt: str


class CredentialEngine:
    """Derives and verifies salted password hashes.

    Args:
        digest: hashlib name of the HMAC digest (>= 512-bit output)
        iterations: PBKDF2 rounds (>= 100000)
        salt_bytes: entropy of generated salts in bytes (>= 16)
        key_length: derived key length in bytes
        salt_factory: returns a new hex salt; injectable for deterministic tests

    Raises:
        CredentialConfigurationError: If any parameter is below the minimums

    Example:
        >>> engine = CredentialEngine()
        >>> stored = engine.hash("correct horse")
        >>> engine.verify("correct horse", stored.hash, stored.salt)
        True
    """

    def __init__(
        self,
        digest: str = "sha512",
        iterations: int = MIN_ITERATIONS,
        salt_bytes: int = MIN_SALT_BYTES,
        key_length: int = 64,
        salt_factory: Callable[[], str] | None = None,
    ):
        self._validate(digest, iterations, salt_bytes, key_length)
        self.digest = digest
        self.iterations = iterations
        self.salt_bytes = salt_bytes
        self.key_length = key_length
        self._salt_factory = salt_factory or (lambda: secrets.token_hex(salt_bytes))
        self._dummy_salt = secrets.token_hex(salt_bytes)

    @classmethod
    def from_settings(cls, settings: Settings) -> "CredentialEngine":
        """Build the engine from application settings."""
        return cls(
            digest=settings.credential_digest,
            iterations=settings.credential_iterations,
            salt_bytes=settings.credential_salt_bytes,
            key_length=settings.credential_key_length,
        )

    @staticmethod
    def _validate(
        digest: str, iterations: int, salt_bytes: int, key_length: int
    ) -> None:
        if iterations < MIN_ITERATIONS:
            msg = f"iterations must be at least {MIN_ITERATIONS}, got {iterations}"
            raise CredentialConfigurationError(msg)
        try:
            digest_size = hashlib.new(digest).digest_size
        except (ValueError, TypeError) as e:
            msg = f"unsupported digest: {digest!r}"
            raise CredentialConfigurationError(msg) from e
        if digest_size < MIN_DIGEST_BYTES:
            msg = f"digest {digest!r} is {digest_size * 8} bits, need at least 512"
            raise CredentialConfigurationError(msg)
        if salt_bytes < MIN_SALT_BYTES:
            msg = f"salt must be at least {MIN_SALT_BYTES} bytes, got {salt_bytes}"
            raise CredentialConfigurationError(msg)
        if key_length < MIN_KEY_LENGTH:
            msg = f"key length must be at least {MIN_KEY_LENGTH} bytes"
            raise CredentialConfigurationError(msg)

    def _derive(self, password: str, salt: str) -> str:
        return hashlib.pbkdf2_hmac(
            self.digest,
            password.encode("utf-8"),
            salt.encode("utf-8"),
            self.iterations,
            self.key_length,
        ).hex()

    def hash(self, password: str) -> PasswordHash:
        """Hash a password with a freshly generated salt.

        Raises:
            ValueError: If password is empty
        """
        if not password:
            msg = "password must not be empty"
            raise ValueError(msg)
        salt = self._salt_factory()
        return PasswordHash(hash=self._derive(password, salt), salt=salt)

    def verify(self, password: str, stored_hash: str, stored_salt: str) -> bool:
        """Check a password against a stored hash and salt.

        Comparison runs in constant time over the hex digests.
        """
        computed = self._derive(password, stored_salt)
        return hmac.compare_digest(
            computed.encode("utf-8"), stored_hash.encode("utf-8")
        )

    def simulate_verify(self, password: str) -> None:
        """Spend one derivation without a stored hash.

        Used when the account does not exist, so that path takes as long as a
        wrong password.
        """
        self._derive(password, self._dummy_salt)
