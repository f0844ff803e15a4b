# Courses module
from edumarket.courses.models import ContentItem, Course, sort_content_items


__all__ = [
    "ContentItem",
    "Course",
    "sort_content_items",
]
