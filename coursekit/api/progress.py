"""Lesson progress endpoints.

  POST /v1/progress          mark a lesson complete, returns the snapshot
  POST /v1/progress/access   note which lesson is open (resume point), 204
  GET  /v1/progress/{id}     snapshot; zero state when nothing is recorded

Both writes are idempotent.  A client whose request timed out (503) can
resend it without double counting.
"""

from __future__ import annotations

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, Field

from coursekit.api.dependencies import AppContainer, CurrentUser
from coursekit.models.progress import ProgressSnapshot

router = APIRouter(prefix="/v1/progress", tags=["progress"])


class LessonRef(BaseModel):
    course_id: str = Field(min_length=1)
    lesson_id: str = Field(min_length=1)


class ProgressOut(BaseModel):
    course_id: str
    completed_lessons: list[str]
    total_lessons: int
    percentage: int
    last_accessed_lesson: str | None = None
    updated_at: str | None = None

    @classmethod
    def of(cls, snapshot: ProgressSnapshot) -> ProgressOut:
        return cls(
            course_id=snapshot.course_id,
            completed_lessons=list(snapshot.completed_lessons),
            total_lessons=snapshot.total_lessons,
            percentage=snapshot.percentage,
            last_accessed_lesson=snapshot.last_accessed_lesson,
            updated_at=snapshot.updated_at,
        )


@router.get(
    "/{course_id}",
    response_model=ProgressOut,
    response_model_exclude_none=True,
)
async def get_progress(
    course_id: str,
    principal: CurrentUser,
    container: AppContainer,
) -> ProgressOut:
    snapshot = await container.progress.get_snapshot(principal.user_id, course_id)
    return ProgressOut.of(snapshot)


@router.post(
    "",
    response_model=ProgressOut,
    response_model_exclude_none=True,
)
async def complete_lesson(
    body: LessonRef,
    principal: CurrentUser,
    container: AppContainer,
) -> ProgressOut:
    snapshot = await container.progress.record_completion(
        principal.user_id, body.course_id, body.lesson_id
    )
    return ProgressOut.of(snapshot)


@router.post("/access", status_code=status.HTTP_204_NO_CONTENT)
async def record_access(
    body: LessonRef,
    principal: CurrentUser,
    container: AppContainer,
) -> Response:
    await container.progress.record_access(principal.user_id, body.course_id, body.lesson_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
