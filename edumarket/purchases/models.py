"""Database models for purchases and enrollments.

Cassandra table definitions for:
- Purchases: Purchase transactions keyed by id
- PurchasesByUser: Lookup table for a user's purchase history
- Enrollments: One record per (user, course), the source of truth for access

Purchase workflow:
1. User initiates purchase -> status 'pending'
2. Payment confirmed -> 'completed', enrollment granted
3. Refund processed -> 'refunded', enrollment access revoked (record kept)
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import uuid4

from edumarket.core.clock import ensure_utc_aware, utc_now


class PurchaseStatus(str, Enum):
    """Purchase transaction status."""

    PENDING = "pending"
    COMPLETED = "completed"
    REFUNDED = "refunded"


# Each status maps to the only status it may move to
ALLOWED_TRANSITIONS: dict[PurchaseStatus, PurchaseStatus] = {
    PurchaseStatus.PENDING: PurchaseStatus.COMPLETED,
    PurchaseStatus.COMPLETED: PurchaseStatus.REFUNDED,
}

# Access granted to the enrollment once a purchase reaches the status
ACCESS_BY_STATUS: dict[PurchaseStatus, bool] = {
    PurchaseStatus.COMPLETED: True,
    PurchaseStatus.REFUNDED: False,
}


def can_transition(
    current: PurchaseStatus | str, target: PurchaseStatus | str
) -> bool:
    """Check whether a purchase may move from current to target.

    Examples:
        >>> can_transition("pending", "completed")
        True
        >>> can_transition("pending", "refunded")
        False
        >>> can_transition("refunded", "completed")
        False
    """
    return ALLOWED_TRANSITIONS.get(PurchaseStatus(current)) == PurchaseStatus(target)


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

PURCHASE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.purchases (
    id TEXT PRIMARY KEY,
    user_id TEXT,
    course_id TEXT,
    status TEXT,
    payment_method TEXT,
    amount DECIMAL,
    purchase_date TIMESTAMP,
    updated_at TIMESTAMP
)
"""

PURCHASES_BY_USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.purchases_by_user (
    user_id TEXT,
    purchase_date TIMESTAMP,
    purchase_id TEXT,
    course_id TEXT,
    PRIMARY KEY ((user_id), purchase_date, purchase_id)
) WITH CLUSTERING ORDER BY (purchase_date DESC, purchase_id ASC)
"""

# Keyed by (user, course) so there is at most one enrollment per pair
ENROLLMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments (
    user_id TEXT,
    course_id TEXT,
    id TEXT,
    purchase_id TEXT,
    has_access BOOLEAN,
    enrolled_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY ((user_id), course_id)
)
"""

PURCHASES_TABLES_CQL = [
    PURCHASE_TABLE_CQL,
    PURCHASES_BY_USER_TABLE_CQL,
    ENROLLMENT_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class PurchaseRecord:
    """A course purchase.

    user_id and course_id are fixed at creation; no store write path
    changes them.
    """

    def __init__(
        self,
        user_id: str,
        course_id: str,
        payment_method: str,
        amount: Decimal,
        id: str | None = None,
        status: PurchaseStatus | str = PurchaseStatus.PENDING,
        purchase_date: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or str(uuid4())
        self.user_id = user_id
        self.course_id = course_id
        self.payment_method = payment_method
        self.amount = amount
        self.status = PurchaseStatus(status)
        self.purchase_date = ensure_utc_aware(purchase_date) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "PurchaseRecord":
        return cls(
            id=row.id,
            user_id=row.user_id,
            course_id=row.course_id,
            payment_method=row.payment_method,
            amount=row.amount,
            status=row.status,
            purchase_date=row.purchase_date,
            updated_at=row.updated_at,
        )

    def touch(self) -> None:
        """Stamp updated_at with the current time."""
        self.updated_at = utc_now()

    def __repr__(self) -> str:
        return f"<PurchaseRecord {self.id} status={self.status.value}>"


class EnrollmentRecord:
    """A user's enrollment in a course.

    Attributes:
        has_access: Whether the user may view the course content
        purchase_id: Purchase whose transition last wrote this record
        enrolled_at: Set when the record is first created, never changed
    """

    def __init__(
        self,
        user_id: str,
        course_id: str,
        has_access: bool,
        purchase_id: str | None = None,
        id: str | None = None,
        enrolled_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or str(uuid4())
        self.user_id = user_id
        self.course_id = course_id
        self.has_access = has_access
        self.purchase_id = purchase_id
        self.enrolled_at = ensure_utc_aware(enrolled_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "EnrollmentRecord":
        return cls(
            id=row.id,
            user_id=row.user_id,
            course_id=row.course_id,
            has_access=bool(row.has_access),
            purchase_id=row.purchase_id,
            enrolled_at=row.enrolled_at,
            updated_at=row.updated_at,
        )

    def touch(self) -> None:
        """Stamp updated_at with the current time."""
        self.updated_at = utc_now()

    def __repr__(self) -> str:
        return (
            f"<EnrollmentRecord {self.user_id}/{self.course_id} "
            f"has_access={self.has_access}>"
        )


@dataclass
class TransitionResult:
    """Outcome of a purchase status transition.

    enrollment is None only for a refund of a purchase that never produced an
    enrollment.
    """

    purchase: PurchaseRecord
    enrollment: EnrollmentRecord | None
