"""Shared fixtures: in-memory stores, services and an HTTP client.

The in-memory stores follow the same contracts as the Cassandra adapters:
duplicate emails are rejected at insert, status changes are compare-and-set,
and every write stamps updated_at. They hand out copies so that a caller
mutating an entity does not change what is "stored".
"""

import copy
import os
import tempfile
from collections.abc import Callable, Iterator
from itertools import count

import pytest


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="edumarket-logs-"))
os.environ.setdefault("REDIS_ENABLED", "false")

from fastapi.testclient import TestClient  # noqa: E402

from edumarket.auth.models import User  # noqa: E402
from edumarket.auth.security import CredentialEngine  # noqa: E402
from edumarket.auth.service import AuthService  # noqa: E402
from edumarket.auth.store import DuplicateEmailError  # noqa: E402
from edumarket.core.errors import StoreError  # noqa: E402
from edumarket.courses.models import ContentItem, Course  # noqa: E402
from edumarket.courses.service import CourseService  # noqa: E402
from edumarket.purchases.models import (  # noqa: E402
    EnrollmentRecord,
    PurchaseRecord,
    PurchaseStatus,
)
from edumarket.purchases.service import AccessService  # noqa: E402


# ==============================================================================
# In-memory stores
# ==============================================================================


class InMemoryUserStore:
    """UserStore kept in dictionaries."""

    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.emails: dict[str, str] = {}
        self.inserts = 0

    def find_by_email(self, email: str) -> User | None:
        user_id = self.emails.get(email)
        return self.find_by_id(user_id) if user_id else None

    def find_by_id(self, user_id: str) -> User | None:
        user = self.users.get(user_id)
        return copy.copy(user) if user else None

    def insert(self, user: User) -> User:
        if user.email in self.emails:
            raise DuplicateEmailError(user.email)
        user.touch()
        self.emails[user.email] = user.id
        self.users[user.id] = copy.copy(user)
        self.inserts += 1
        return user

    def update(self, user: User) -> User:
        user.touch()
        self.users[user.id] = copy.copy(user)
        return user


class InMemoryCourseStore:
    """CourseStore kept in dictionaries."""

    def __init__(self) -> None:
        self.courses: dict[str, Course] = {}
        self.content: dict[str, list[ContentItem]] = {}
        self.list_content_calls = 0

    def find_by_id(self, course_id: str) -> Course | None:
        course = self.courses.get(course_id)
        return copy.copy(course) if course else None

    def list_courses(self) -> list[Course]:
        return [copy.copy(c) for c in self.courses.values()]

    def insert(self, course: Course) -> Course:
        course.touch()
        self.courses[course.id] = copy.copy(course)
        return course

    def update(self, course: Course) -> Course:
        course.touch()
        self.courses[course.id] = copy.copy(course)
        return course

    def insert_content(self, item: ContentItem) -> ContentItem:
        item.touch()
        self.content.setdefault(item.course_id, []).append(copy.copy(item))
        return item

    def list_content(self, course_id: str) -> list[ContentItem]:
        self.list_content_calls += 1
        return [copy.copy(i) for i in self.content.get(course_id, [])]


class InMemoryPurchaseStore:
    """PurchaseStore with compare-and-set status updates.

    before_transition, when set, runs just before the compare so tests can
    simulate another writer getting there first.
    """

    def __init__(self) -> None:
        self.purchases: dict[str, PurchaseRecord] = {}
        self.before_transition: Callable[[PurchaseRecord], None] | None = None

    def find_by_id(self, purchase_id: str) -> PurchaseRecord | None:
        purchase = self.purchases.get(purchase_id)
        return copy.copy(purchase) if purchase else None

    def insert(self, purchase: PurchaseRecord) -> PurchaseRecord:
        purchase.touch()
        self.purchases[purchase.id] = copy.copy(purchase)
        return purchase

    def list_by_user(self, user_id: str) -> list[PurchaseRecord]:
        return [copy.copy(p) for p in self.purchases.values() if p.user_id == user_id]

    def transition_status(
        self, purchase: PurchaseRecord, target: PurchaseStatus
    ) -> bool:
        if self.before_transition is not None:
            hook, self.before_transition = self.before_transition, None
            hook(purchase)
        stored = self.purchases[purchase.id]
        if stored.status != purchase.status:
            return False
        purchase.touch()
        purchase.status = target
        self.purchases[purchase.id] = copy.copy(purchase)
        return True

    def force_status(self, purchase_id: str, status: PurchaseStatus) -> None:
        """Change a stored status directly, as a concurrent writer would."""
        stored = self.purchases[purchase_id]
        stored.status = status
        stored.touch()


class InMemoryEnrollmentStore:
    """EnrollmentStore keyed by (user_id, course_id).

    fail_next_upsert simulates a crash between the purchase status change and
    the enrollment write.
    """

    def __init__(self) -> None:
        self.enrollments: dict[tuple[str, str], EnrollmentRecord] = {}
        self.fail_next_upsert = False
        self.upserts = 0

    def find(self, user_id: str, course_id: str) -> EnrollmentRecord | None:
        enrollment = self.enrollments.get((user_id, course_id))
        return copy.copy(enrollment) if enrollment else None

    def upsert(self, enrollment: EnrollmentRecord) -> EnrollmentRecord:
        if self.fail_next_upsert:
            self.fail_next_upsert = False
            raise StoreError
        enrollment.touch()
        key = (enrollment.user_id, enrollment.course_id)
        self.enrollments[key] = copy.copy(enrollment)
        self.upserts += 1
        return enrollment


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture(scope="session")
def credentials() -> CredentialEngine:
    """Credential engine with production parameters."""
    return CredentialEngine()


@pytest.fixture
def deterministic_credentials() -> CredentialEngine:
    """Credential engine whose salts are a predictable sequence."""
    counter = count()
    return CredentialEngine(salt_factory=lambda: f"{next(counter):032x}")


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def auth_service(
    user_store: InMemoryUserStore, credentials: CredentialEngine
) -> AuthService:
    return AuthService(store=user_store, credentials=credentials)


@pytest.fixture
def course_store() -> InMemoryCourseStore:
    return InMemoryCourseStore()


@pytest.fixture
def course_service(course_store: InMemoryCourseStore) -> CourseService:
    return CourseService(store=course_store)


@pytest.fixture
def purchase_store() -> InMemoryPurchaseStore:
    return InMemoryPurchaseStore()


@pytest.fixture
def enrollment_store() -> InMemoryEnrollmentStore:
    return InMemoryEnrollmentStore()


@pytest.fixture
def access_service(
    purchase_store: InMemoryPurchaseStore,
    enrollment_store: InMemoryEnrollmentStore,
    course_service: CourseService,
) -> AccessService:
    return AccessService(
        purchases=purchase_store,
        enrollments=enrollment_store,
        course_service=course_service,
    )


@pytest.fixture
def client(
    auth_service: AuthService,
    course_service: CourseService,
    access_service: AccessService,
) -> Iterator[TestClient]:
    """Test client wired to in-memory services.

    The lifespan is not run, so no database or Redis connection is attempted.
    """
    from edumarket.auth.dependencies import set_auth_service_getter
    from edumarket.courses.dependencies import set_course_service_getter
    from edumarket.main import (
        app,
        get_access_service,
        get_auth_service,
        get_course_service,
    )
    from edumarket.purchases.dependencies import set_access_service_getter

    set_auth_service_getter(lambda: auth_service)
    set_course_service_getter(lambda: course_service)
    set_access_service_getter(lambda: access_service)

    yield TestClient(app, raise_server_exceptions=False)

    set_auth_service_getter(get_auth_service)
    set_course_service_getter(get_course_service)
    set_access_service_getter(get_access_service)
