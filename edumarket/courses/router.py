"""Course API endpoints.

Provides routes for:
- Public course catalogue
- Admin course and content management
- Enrollment-gated content and access checks
"""

from fastapi import APIRouter, status

from edumarket.auth.dependencies import AdminUser, CurrentUser
from edumarket.courses.dependencies import CourseServiceDep
from edumarket.courses.schemas import (
    AccessResponse,
    ContentItemCreate,
    ContentItemResponse,
    CourseCreate,
    CourseResponse,
)
from edumarket.purchases.dependencies import AccessServiceDep


router = APIRouter(prefix="/v1/courses", tags=["courses"])


# ==============================================================================
# Public Endpoints
# ==============================================================================


@router.get("", response_model=list[CourseResponse], summary="List courses")
async def list_courses(course_service: CourseServiceDep) -> list[CourseResponse]:
    """List courses that have not been deleted, newest first."""
    courses = await course_service.list_active_courses()
    return [CourseResponse.from_course(c) for c in courses]


@router.get(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Get course",
    responses={404: {"description": "Course not found"}},
)
async def get_course(
    course_id: str, course_service: CourseServiceDep
) -> CourseResponse:
    course = await course_service.get_course(course_id)
    return CourseResponse.from_course(course)


# ==============================================================================
# Admin Endpoints
# ==============================================================================


@router.post(
    "",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create course (admin)",
)
async def create_course(
    data: CourseCreate, admin: AdminUser, course_service: CourseServiceDep
) -> CourseResponse:
    course = await course_service.create_course(
        admin_id=admin.id, name=data.name, price=data.price
    )
    return CourseResponse.from_course(course)


@router.delete(
    "/{course_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete course (admin)",
    responses={404: {"description": "Course not found"}},
)
async def delete_course(
    course_id: str, _admin: AdminUser, course_service: CourseServiceDep
) -> None:
    """Soft-delete a course. Purchase history and enrollments are kept."""
    await course_service.delete_course(course_id)


@router.post(
    "/{course_id}/content",
    response_model=ContentItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add content item (admin)",
    responses={404: {"description": "Course not found"}},
)
async def add_content_item(
    course_id: str,
    data: ContentItemCreate,
    _admin: AdminUser,
    course_service: CourseServiceDep,
) -> ContentItemResponse:
    item = await course_service.add_content_item(
        course_id=course_id,
        title=data.title,
        content_type=data.content_type,
        content_url=data.content_url,
        description=data.description,
        order=data.order,
    )
    return ContentItemResponse.from_item(item)


# ==============================================================================
# Enrolled Users
# ==============================================================================


@router.get(
    "/{course_id}/content",
    response_model=list[ContentItemResponse],
    summary="Get course content",
    responses={403: {"description": "Not enrolled in the course"}},
)
async def get_course_content(
    course_id: str, user: CurrentUser, access_service: AccessServiceDep
) -> list[ContentItemResponse]:
    """Ordered content of a course the current user has access to."""
    items = await access_service.get_course_content(user.id, course_id)
    return [ContentItemResponse.from_item(i) for i in items]


@router.get(
    "/{course_id}/access",
    response_model=AccessResponse,
    summary="Check course access",
)
async def check_access(
    course_id: str, user: CurrentUser, access_service: AccessServiceDep
) -> AccessResponse:
    allowed = await access_service.can_access_content(user.id, course_id)
    return AccessResponse(course_id=course_id, has_access=allowed)
