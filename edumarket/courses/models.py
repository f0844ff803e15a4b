"""Database models for courses.

Cassandra table definitions for:
- Courses: Course catalogue, soft-deleted via is_deleted
- CourseContent: Content items partitioned by course
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import uuid4

from edumarket.core.clock import ensure_utc_aware, utc_now


PRICE_QUANTUM = Decimal("0.01")


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id TEXT PRIMARY KEY,
    admin_id TEXT,
    name TEXT,
    price DECIMAL,
    is_deleted BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Largest position the CQL INT column holds
MAX_CONTENT_POSITION = 2**31 - 1

# "order" is reserved in CQL, the column is named position
COURSE_CONTENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_content (
    course_id TEXT,
    id TEXT,
    title TEXT,
    description TEXT,
    content_type TEXT,
    content_url TEXT,
    position INT,
    is_deleted BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY ((course_id), id)
)
"""

COURSES_TABLES_CQL = [
    COURSE_TABLE_CQL,
    COURSE_CONTENT_TABLE_CQL,
]


def quantize_price(value: Decimal | int | float | str) -> Decimal:
    """Round a price to two decimal places."""
    return Decimal(str(value)).quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


# ==============================================================================
# Entity Classes
# ==============================================================================


class Course:
    """Course entity."""

    def __init__(
        self,
        id: str | None = None,
        admin_id: str | None = None,
        name: str = "",
        price: Decimal | int | str = Decimal("0.00"),
        is_deleted: bool = False,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or str(uuid4())
        self.admin_id = admin_id
        self.name = name
        self.price = quantize_price(price)
        self.is_deleted = is_deleted
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        return cls(
            id=row.id,
            admin_id=row.admin_id,
            name=row.name,
            price=row.price,
            is_deleted=bool(row.is_deleted),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def touch(self) -> None:
        """Stamp updated_at with the current time."""
        self.updated_at = utc_now()

    def __repr__(self) -> str:
        return f"<Course {self.id} {self.name!r}>"


class ContentItem:
    """A piece of course content (video, image, PDF, ...).

    Attributes:
        order: Position within the course; None sorts after ordered items
    """

    def __init__(
        self,
        course_id: str,
        title: str,
        content_type: str,
        content_url: str,
        id: str | None = None,
        description: str | None = None,
        order: int | None = None,
        is_deleted: bool = False,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or str(uuid4())
        self.course_id = course_id
        self.title = title
        self.description = description
        self.content_type = content_type
        self.content_url = content_url
        self.order = order
        self.is_deleted = is_deleted
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "ContentItem":
        return cls(
            id=row.id,
            course_id=row.course_id,
            title=row.title,
            description=row.description,
            content_type=row.content_type,
            content_url=row.content_url,
            order=row.position,
            is_deleted=bool(row.is_deleted),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def touch(self) -> None:
        """Stamp updated_at with the current time."""
        self.updated_at = utc_now()

    def __repr__(self) -> str:
        return f"<ContentItem {self.id} order={self.order}>"


def sort_content_items(items: list[ContentItem]) -> list[ContentItem]:
    """Order items by position, unordered items last, ties by creation time."""
    return sorted(
        items,
        key=lambda item: (
            item.order is None,
            item.order if item.order is not None else 0,
            item.created_at,
        ),
    )
