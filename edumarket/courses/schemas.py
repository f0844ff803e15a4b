"""Pydantic schemas for courses and content items."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from edumarket.courses.models import MAX_CONTENT_POSITION, ContentItem, Course


# ==============================================================================
# Request Schemas
# ==============================================================================


class CourseCreate(BaseModel):
    """Schema for creating a course."""

    name: str = Field(..., max_length=255)
    price: Decimal = Field(..., max_digits=10, decimal_places=2)


class ContentItemCreate(BaseModel):
    """Schema for adding a content item to a course."""

    title: str = Field(..., max_length=255)
    content_type: str = Field(..., description="video, image, pdf, ...")
    content_url: str
    description: str | None = None
    order: int | None = Field(
        None, ge=0, le=MAX_CONTENT_POSITION, description="Position within the course"
    )


# ==============================================================================
# Response Schemas
# ==============================================================================


class CourseResponse(BaseModel):
    """Course response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    admin_id: str | None
    name: str
    price: Decimal
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_course(cls, course: Course) -> "CourseResponse":
        return cls.model_validate(course)


class ContentItemResponse(BaseModel):
    """Content item response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    course_id: str
    title: str
    description: str | None
    content_type: str
    content_url: str
    order: int | None
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_item(cls, item: ContentItem) -> "ContentItemResponse":
        return cls.model_validate(item)


class AccessResponse(BaseModel):
    """Whether the current user can view a course's content."""

    course_id: str
    has_access: bool
