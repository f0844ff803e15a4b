"""Course and content store.

CourseStore is the contract CourseService depends on. Soft deletes go
through update(); there is no hard-delete path, so purchases always keep
their course.
"""

from typing import Protocol

from edumarket.core.database.cassandra import CassandraStore
from edumarket.courses.models import ContentItem, Course


class CourseStore(Protocol):
    """Lookup and write contract for courses and their content."""

    def find_by_id(self, course_id: str) -> Course | None: ...

    def list_courses(self) -> list[Course]:
        """All courses, including soft-deleted ones."""
        ...

    def insert(self, course: Course) -> Course: ...

    def update(self, course: Course) -> Course: ...

    def insert_content(self, item: ContentItem) -> ContentItem: ...

    def list_content(self, course_id: str) -> list[ContentItem]:
        """All content items of a course, in no particular order."""
        ...


class CassandraCourseStore(CassandraStore):
    """CourseStore backed by Cassandra."""

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for better performance."""
        self._get_course = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.courses WHERE id = ?"
        )
        self._list_courses = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.courses"
        )
        self._insert_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses
            (id, admin_id, name, price, is_deleted, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_course = self.session.prepare(f"""
            UPDATE {self.keyspace}.courses
            SET name = ?, price = ?, is_deleted = ?, updated_at = ?
            WHERE id = ?
        """)
        self._insert_content = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.course_content
            (course_id, id, title, description, content_type, content_url,
             position, is_deleted, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._list_content = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.course_content WHERE course_id = ?"
        )

    def find_by_id(self, course_id: str) -> Course | None:
        row = self._execute(self._get_course, [course_id]).one()
        return Course.from_row(row) if row else None

    def list_courses(self) -> list[Course]:
        rows = self._execute(self._list_courses)
        return [Course.from_row(row) for row in rows]

    def insert(self, course: Course) -> Course:
        course.touch()
        self._execute(
            self._insert_course,
            [
                course.id,
                course.admin_id,
                course.name,
                course.price,
                course.is_deleted,
                course.created_at,
                course.updated_at,
            ],
        )
        return course

    def update(self, course: Course) -> Course:
        course.touch()
        self._execute(
            self._update_course,
            [
                course.name,
                course.price,
                course.is_deleted,
                course.updated_at,
                course.id,
            ],
        )
        return course

    def insert_content(self, item: ContentItem) -> ContentItem:
        item.touch()
        self._execute(
            self._insert_content,
            [
                item.course_id,
                item.id,
                item.title,
                item.description,
                item.content_type,
                item.content_url,
                item.order,
                item.is_deleted,
                item.created_at,
                item.updated_at,
            ],
        )
        return item

    def list_content(self, course_id: str) -> list[ContentItem]:
        rows = self._execute(self._list_content, [course_id])
        return [ContentItem.from_row(row) for row in rows]
