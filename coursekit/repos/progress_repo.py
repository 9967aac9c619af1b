from __future__ import annotations

from coursekit.models.progress import ProgressRecord
from coursekit.repos.kv_store import KeyValueStore

COMPLETED_LESSONS = "completedLessons"


def _pk(learner_id: str) -> str:
    return f"STUDENT#{learner_id}"


def _sk(course_id: str) -> str:
    return f"PROGRESS#{course_id}"


class ProgressRepo:
    """Progress records.

    Both writes are single store calls.  The completed-lessons set is only
    ever touched through add_to_set, so concurrent completions of
    different lessons all survive.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def get(self, learner_id: str, course_id: str) -> ProgressRecord | None:
        item = await self._store.get(_pk(learner_id), _sk(course_id))
        return None if item is None else ProgressRecord.from_item(learner_id, item)

    async def record_access(
        self, learner_id: str, course_id: str, lesson_id: str, updated_at: str
    ) -> ProgressRecord:
        item = await self._store.update(
            _pk(learner_id),
            _sk(course_id),
            {
                "entityType": "PROGRESS",
                "courseId": course_id,
                "lastAccessedLesson": lesson_id,
                "updatedAt": updated_at,
            },
        )
        return ProgressRecord.from_item(learner_id, item)

    async def record_completion(
        self, learner_id: str, course_id: str, lesson_id: str, updated_at: str
    ) -> ProgressRecord:
        item = await self._store.add_to_set(
            _pk(learner_id),
            _sk(course_id),
            COMPLETED_LESSONS,
            lesson_id,
            {
                "entityType": "PROGRESS",
                "courseId": course_id,
                "lastAccessedLesson": lesson_id,
                "updatedAt": updated_at,
            },
        )
        return ProgressRecord.from_item(learner_id, item)
