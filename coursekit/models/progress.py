from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


def completion_percentage(completed: int, total: int) -> int:
    """Share of lessons completed, rounded half up, in [0, 100].

    Integer arithmetic only: round(100 * 1 / 8) would give 12 under
    banker's rounding, this gives 13.  A zero-lesson course reports 0.
    """
    if total <= 0:
        return 0
    return min(100, (200 * completed + total) // (2 * total))


@dataclass(frozen=True, slots=True)
class ProgressRecord:
    """Persisted per-(learner, course) progress.

    completed_lessons only ever grows.  updated_at is an ISO-8601 UTC
    timestamp refreshed by every write.
    """

    learner_id: str
    course_id: str
    completed_lessons: frozenset[str]
    last_accessed_lesson: str | None
    updated_at: str

    @classmethod
    def from_item(cls, learner_id: str, item: Mapping[str, Any]) -> ProgressRecord:
        return cls(
            learner_id=learner_id,
            course_id=item["courseId"],
            completed_lessons=frozenset(item.get("completedLessons", ())),
            last_accessed_lesson=item.get("lastAccessedLesson"),
            updated_at=item["updatedAt"],
        )


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    """What the progress endpoints return.

    A learner with no record gets the zero state (no lessons, 0%) rather
    than an error.
    """

    course_id: str
    completed_lessons: tuple[str, ...]
    total_lessons: int
    percentage: int
    last_accessed_lesson: str | None = None
    updated_at: str | None = None

    @classmethod
    def empty(cls, course_id: str, total_lessons: int) -> ProgressSnapshot:
        return cls(
            course_id=course_id,
            completed_lessons=(),
            total_lessons=total_lessons,
            percentage=0,
        )

    @classmethod
    def of(cls, record: ProgressRecord, total_lessons: int) -> ProgressSnapshot:
        completed = tuple(sorted(record.completed_lessons))
        return cls(
            course_id=record.course_id,
            completed_lessons=completed,
            total_lessons=total_lessons,
            percentage=completion_percentage(len(completed), total_lessons),
            last_accessed_lesson=record.last_accessed_lesson,
            updated_at=record.updated_at,
        )
