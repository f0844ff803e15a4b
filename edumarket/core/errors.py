"""Application error taxonomy.

Every failure a public operation can report is one of these kinds. Store
adapters translate driver exceptions into StoreError, so callers never see raw
persistence errors. Messages are safe to show to users and never contain
passwords, hashes or salts.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(self, message: str, code: str = "app_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Missing or malformed input."""

    def __init__(self, message: str = "Invalid input", fields: list[str] | None = None):
        super().__init__(message, "validation_error")
        self.fields = fields or []


class InvalidRoleError(AppError):
    """Role is not one of the supported roles."""

    def __init__(self, message: str = "Invalid user role"):
        super().__init__(message, "invalid_role")


class EmailTakenError(AppError):
    """Email already registered."""

    def __init__(self, message: str = "Email already registered"):
        super().__init__(message, "email_taken")


class InvalidCredentialsError(AppError):
    """Invalid email or password (deliberately undifferentiated)."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, "invalid_credentials")


class AccountDeactivatedError(AppError):
    """User account is deactivated."""

    def __init__(self, message: str = "Account is deactivated"):
        super().__init__(message, "deactivated")


class NotFoundError(AppError):
    """Requested entity does not exist."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message, "not_found")


class InvalidTransitionError(AppError):
    """Purchase status transition is not allowed."""

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot move purchase from '{current}' to '{target}'",
            "invalid_transition",
        )
        self.current = current
        self.target = target


class AccessDeniedError(AppError):
    """Caller may not view the requested content."""

    def __init__(
        self, message: str = "Access denied. User is not enrolled in the course."
    ):
        super().__init__(message, "access_denied")


class StoreError(AppError):
    """Underlying persistence failure (network, timeout, unclassified)."""

    def __init__(self, message: str = "Storage backend unavailable"):
        super().__init__(message, "store_error")
