"""FastAPI dependencies for purchases and content access."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends

from edumarket.purchases.service import AccessService


_access_service_getter: Callable[[], AccessService] | None = None


def set_access_service_getter(getter: Callable[[], AccessService]) -> None:
    """Set the access service getter function."""
    global _access_service_getter  # noqa: PLW0603 - Required for DI pattern
    _access_service_getter = getter


def get_access_service() -> AccessService:
    """Get AccessService instance from app state."""
    if _access_service_getter is None:
        msg = "AccessService not configured"
        raise RuntimeError(msg)
    return _access_service_getter()


AccessServiceDep = Annotated[AccessService, Depends(get_access_service)]
