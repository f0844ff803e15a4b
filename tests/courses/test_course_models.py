"""Tests for course entities and content ordering."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

from edumarket.courses.models import (
    ContentItem,
    Course,
    quantize_price,
    sort_content_items,
)


BASE_TIME = datetime(2026, 1, 1, tzinfo=UTC)


def item(title: str, order: int | None, minutes: int = 0) -> ContentItem:
    return ContentItem(
        course_id="course-1",
        title=title,
        content_type="video",
        content_url=f"https://cdn.example.com/{title}.mp4",
        order=order,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


class TestContentOrdering:
    """Tests for sort_content_items."""

    def test_orders_ascending_with_unordered_last(self) -> None:
        items = [item("c", 3), item("a", 1), item("none", None), item("b", 2)]
        assert [i.order for i in sort_content_items(items)] == [1, 2, 3, None]

    def test_ties_break_by_creation_time(self) -> None:
        items = [item("later", 1, minutes=5), item("earlier", 1, minutes=1)]
        assert [i.title for i in sort_content_items(items)] == ["earlier", "later"]

    def test_unordered_items_keep_creation_order(self) -> None:
        items = [
            item("third", None, minutes=3),
            item("first", None, minutes=1),
            item("second", None, minutes=2),
        ]
        titles = [i.title for i in sort_content_items(items)]
        assert titles == ["first", "second", "third"]

    def test_zero_sorts_before_positive(self) -> None:
        items = [item("one", 1), item("zero", 0)]
        assert [i.title for i in sort_content_items(items)] == ["zero", "one"]

    def test_empty(self) -> None:
        assert sort_content_items([]) == []


class TestCourse:
    """Tests for Course."""

    def test_price_is_quantized(self) -> None:
        course = Course(name="Python", price="19.999")
        assert course.price == Decimal("20.00")

    def test_quantize_price(self) -> None:
        assert quantize_price(10) == Decimal("10.00")
        assert quantize_price("0.105") == Decimal("0.11")

    def test_touch_sets_updated_at(self) -> None:
        course = Course(name="Python", price=10)
        assert course.updated_at is None
        course.touch()
        assert course.updated_at is not None

    def test_naive_timestamps_become_utc(self) -> None:
        course = Course(name="Python", price=10, created_at=datetime(2026, 1, 1))
        assert course.created_at.tzinfo is UTC
