"""Per-learner, per-course lesson progress.

record_completion is the write that matters.  A learner with two tabs
open can finish lesson 2 in one and lesson 3 in the other within the same
second; both must end up in the completed set.  The repo turns each call
into one atomic add_to_set, so there is no read-then-write window for the
second call to overwrite the first.

It is also idempotent: completing a lesson twice leaves one entry and the
same percentage.  A client that timed out (StoreUnavailable) can simply
resend.

The lesson count is read from the catalogue on every snapshot.  Courses
grow; a cached count would overstate percentages after a new lesson is
published.
"""

from __future__ import annotations

import logging

from coursekit.core.clock import Clock, iso_timestamp, utcnow
from coursekit.core.errors import NotFound
from coursekit.core.metrics import PROGRESS_UPDATES
from coursekit.models.progress import ProgressSnapshot
from coursekit.repos.catalog_repo import CatalogRepo
from coursekit.repos.kv_store import store_deadline
from coursekit.repos.progress_repo import ProgressRepo

logger = logging.getLogger(__name__)


class ProgressStore:
    def __init__(
        self,
        progress: ProgressRepo,
        catalog: CatalogRepo,
        *,
        timeout_seconds: float = 2.0,
        clock: Clock = utcnow,
    ) -> None:
        self._progress = progress
        self._catalog = catalog
        self._timeout_seconds = timeout_seconds
        self._clock = clock

    async def _require_lesson(self, course_id: str, lesson_id: str) -> None:
        if await self._catalog.get_lesson(course_id, lesson_id) is None:
            raise NotFound(f"Lesson {lesson_id} not found in course {course_id}")

    async def record_access(self, learner_id: str, course_id: str, lesson_id: str) -> None:
        """Set lastAccessedLesson without touching the completed set."""
        updated_at = iso_timestamp(self._clock())
        async with store_deadline(self._timeout_seconds):
            await self._require_lesson(course_id, lesson_id)
            await self._progress.record_access(learner_id, course_id, lesson_id, updated_at)
        PROGRESS_UPDATES.labels(operation="access").inc()

    async def record_completion(
        self, learner_id: str, course_id: str, lesson_id: str
    ) -> ProgressSnapshot:
        updated_at = iso_timestamp(self._clock())
        async with store_deadline(self._timeout_seconds):
            await self._require_lesson(course_id, lesson_id)
            record = await self._progress.record_completion(
                learner_id, course_id, lesson_id, updated_at
            )
            total = await self._catalog.count_lessons(course_id)
        PROGRESS_UPDATES.labels(operation="completion").inc()

        snapshot = ProgressSnapshot.of(record, total)
        logger.info(
            "Lesson completed (%d/%d, %d%%)",
            len(snapshot.completed_lessons),
            total,
            snapshot.percentage,
            extra={"learner_id": learner_id, "course_id": course_id, "lesson_id": lesson_id},
        )
        return snapshot

    async def get_snapshot(self, learner_id: str, course_id: str) -> ProgressSnapshot:
        async with store_deadline(self._timeout_seconds):
            record = await self._progress.get(learner_id, course_id)
            total = await self._catalog.count_lessons(course_id)
        if record is None:
            return ProgressSnapshot.empty(course_id, total)
        return ProgressSnapshot.of(record, total)
