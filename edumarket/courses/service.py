"""Course service layer.

Business logic for the course catalogue and course content. Content listing
here is unguarded; callers that serve content to users go through
AccessService, which checks enrollment first.
"""

from decimal import Decimal, InvalidOperation

import structlog

from edumarket.core.errors import NotFoundError, ValidationError
from edumarket.courses.models import (
    MAX_CONTENT_POSITION,
    ContentItem,
    Course,
    quantize_price,
    sort_content_items,
)
from edumarket.courses.store import CourseStore


logger = structlog.get_logger(__name__)


class CourseService:
    """Service for course and content operations."""

    def __init__(self, store: CourseStore):
        self.store = store

    async def list_active_courses(self) -> list[Course]:
        """List courses that are not soft-deleted, newest first."""
        courses = [c for c in self.store.list_courses() if not c.is_deleted]
        return sorted(courses, key=lambda c: c.created_at, reverse=True)

    async def get_course(self, course_id: str) -> Course:
        """Get a visible course.

        Raises:
            NotFoundError: If the course does not exist or is soft-deleted
        """
        course = self.store.find_by_id(course_id) if course_id else None
        if course is None or course.is_deleted:
            raise NotFoundError("Course not found")
        return course

    async def create_course(
        self, admin_id: str | None, name: str, price: Decimal | int | str
    ) -> Course:
        """Create a course.

        Raises:
            ValidationError: If name is empty or price is negative or not a number
        """
        if not name or not name.strip():
            raise ValidationError("Course name is required", fields=["name"])
        try:
            amount = quantize_price(price)
        except (InvalidOperation, ValueError) as e:
            raise ValidationError("Price must be a number", fields=["price"]) from e
        if not amount.is_finite():
            raise ValidationError("Price must be a number", fields=["price"])
        if amount < 0:
            raise ValidationError("Price cannot be negative", fields=["price"])

        course = Course(admin_id=admin_id, name=name.strip(), price=amount)
        self.store.insert(course)

        logger.info("course_created", course_id=course.id, admin_id=admin_id)
        return course

    async def delete_course(self, course_id: str) -> Course:
        """Soft-delete a course. Purchases and enrollments are kept.

        Raises:
            NotFoundError: If the course does not exist or is already deleted
        """
        course = await self.get_course(course_id)
        course.is_deleted = True
        self.store.update(course)

        logger.info("course_deleted", course_id=course.id)
        return course

    async def add_content_item(
        self,
        course_id: str,
        title: str,
        content_type: str,
        content_url: str,
        description: str | None = None,
        order: int | None = None,
    ) -> ContentItem:
        """Add a content item to a course.

        Raises:
            NotFoundError: If the course does not exist or is soft-deleted
            ValidationError: If title, content_type or content_url is empty,
                or order is negative or too large
        """
        missing = [
            field
            for field, value in (
                ("title", title),
                ("content_type", content_type),
                ("content_url", content_url),
            )
            if not value or not value.strip()
        ]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}", fields=missing
            )
        if order is not None and order < 0:
            raise ValidationError("Order cannot be negative", fields=["order"])
        if order is not None and order > MAX_CONTENT_POSITION:
            raise ValidationError("Order is too large", fields=["order"])

        course = await self.get_course(course_id)

        item = ContentItem(
            course_id=course.id,
            title=title.strip(),
            content_type=content_type.strip(),
            content_url=content_url.strip(),
            description=description,
            order=order,
        )
        self.store.insert_content(item)

        logger.info("content_item_added", course_id=course.id, content_id=item.id)
        return item

    async def list_visible_content(self, course_id: str) -> list[ContentItem]:
        """Non-deleted content items of a course in display order."""
        items = [i for i in self.store.list_content(course_id) if not i.is_deleted]
        return sort_content_items(items)
