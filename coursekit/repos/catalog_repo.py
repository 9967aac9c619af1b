from __future__ import annotations

from coursekit.models.course import Course, Lesson
from coursekit.repos.kv_store import KeyValueStore


def course_pk(course_id: str) -> str:
    return f"COURSE#{course_id}"


_METADATA = "METADATA"
_LESSON_PREFIX = "LESSON#"
_COURSE_PREFIX = "COURSE#"

# Every course is also written under one catalogue partition so the
# full list is a single prefix query.
CATALOG_PK = "CATALOG"


class CatalogRepo:
    """Courses and their lessons.  Read-mostly; writes come from seeding (add_course, add_lesson)."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def get_course(self, course_id: str) -> Course | None:
        item = await self._store.get(course_pk(course_id), _METADATA)
        return None if item is None else Course.from_item(item)

    async def add_course(self, course: Course) -> None:
        item = course.to_item()
        await self._store.update(course_pk(course.id), _METADATA, item)
        await self._store.update(CATALOG_PK, f"{_COURSE_PREFIX}{course.id}", item)

    async def list_courses(self) -> list[Course]:
        items = await self._store.query(CATALOG_PK, _COURSE_PREFIX)
        return [Course.from_item(item) for item in items]

    async def add_lesson(self, lesson: Lesson) -> None:
        await self._store.update(
            course_pk(lesson.course_id), f"{_LESSON_PREFIX}{lesson.id}", lesson.to_item()
        )

    async def get_lesson(self, course_id: str, lesson_id: str) -> Lesson | None:
        item = await self._store.get(course_pk(course_id), f"{_LESSON_PREFIX}{lesson_id}")
        return None if item is None else Lesson.from_item(item)

    async def list_lessons(self, course_id: str) -> list[Lesson]:
        items = await self._store.query(course_pk(course_id), _LESSON_PREFIX)
        lessons = [Lesson.from_item(item) for item in items]
        lessons.sort(key=lambda lesson: (lesson.order, lesson.id))
        return lessons

    async def count_lessons(self, course_id: str) -> int:
        return len(await self._store.query(course_pk(course_id), _LESSON_PREFIX))
