"""Course catalogue and enrollment endpoints.

Lesson listings never include the video object key.  A learner gets to a
video only through /video-url, which runs the enrollment gate first.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from coursekit.api.dependencies import AppContainer, CurrentUser
from coursekit.core.errors import NotFound
from coursekit.models.course import Course
from coursekit.models.enrollment import Enrollment
from coursekit.repos.kv_store import store_deadline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["courses"])


class CourseOut(BaseModel):
    course_id: str
    name: str
    pricing_model: str
    total_lessons: int | None = None  # detail view only

    @classmethod
    def of(cls, course: Course, total_lessons: int | None = None) -> CourseOut:
        return cls(
            course_id=course.id,
            name=course.name,
            pricing_model=course.pricing_model,
            total_lessons=total_lessons,
        )


class LessonOut(BaseModel):
    lesson_id: str
    course_id: str
    title: str
    order: int
    description: str | None = None
    length_in_mins: int | None = None


class EnrollmentCheckOut(BaseModel):
    enrolled: bool
    payment_status: str | None = None


class EnrollmentOut(BaseModel):
    course_id: str
    enrollment_type: str
    payment_status: str
    enrolled_at: str
    progress: int
    completed: bool

    @classmethod
    def of(cls, enrollment: Enrollment) -> EnrollmentOut:
        return cls(
            course_id=enrollment.course_id,
            enrollment_type=enrollment.enrollment_type,
            payment_status=enrollment.payment_status,
            enrolled_at=enrollment.enrolled_at,
            progress=enrollment.progress,
            completed=enrollment.completed,
        )


@router.get("/courses", response_model=list[CourseOut], response_model_exclude_none=True)
async def list_courses(
    principal: CurrentUser,
    container: AppContainer,
) -> list[CourseOut]:
    async with store_deadline(container.settings.store_timeout_seconds):
        courses = await container.catalog.list_courses()
    return [CourseOut.of(course) for course in courses]


@router.get("/courses/{course_id}", response_model=CourseOut)
async def get_course(
    course_id: str,
    principal: CurrentUser,
    container: AppContainer,
) -> CourseOut:
    async with store_deadline(container.settings.store_timeout_seconds):
        course = await container.catalog.get_course(course_id)
        if course is None:
            raise NotFound("Course not found")
        total = await container.catalog.count_lessons(course_id)
    return CourseOut.of(course, total_lessons=total)


@router.get(
    "/courses/{course_id}/lessons",
    response_model=list[LessonOut],
    response_model_exclude_none=True,
)
async def list_lessons(
    course_id: str,
    principal: CurrentUser,
    container: AppContainer,
) -> list[LessonOut]:
    async with store_deadline(container.settings.store_timeout_seconds):
        course = await container.catalog.get_course(course_id)
        if course is None:
            raise NotFound("Course not found")
        lessons = await container.catalog.list_lessons(course_id)
    return [
        LessonOut(
            lesson_id=lesson.id,
            course_id=lesson.course_id,
            title=lesson.title,
            order=lesson.order,
            description=lesson.description,
            length_in_mins=lesson.length_in_mins,
        )
        for lesson in lessons
    ]


@router.post("/courses/{course_id}/enroll", response_model=EnrollmentOut)
async def enroll(
    course_id: str,
    principal: CurrentUser,
    container: AppContainer,
    response: Response,
) -> EnrollmentOut:
    """201 for a new enrollment, 200 when the learner was already enrolled."""
    result = await container.enrollment_service.enroll(principal.user_id, course_id)
    response.status_code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
    return EnrollmentOut.of(result.enrollment)


@router.get("/enrollments", response_model=list[EnrollmentOut])
async def list_enrollments(
    principal: CurrentUser,
    container: AppContainer,
) -> list[EnrollmentOut]:
    enrollments = await container.enrollment_service.list_enrollments(principal.user_id)
    return [EnrollmentOut.of(e) for e in enrollments]


@router.get(
    "/enrollments/check/{course_id}",
    response_model=EnrollmentCheckOut,
    response_model_exclude_none=True,
)
async def check_enrollment(
    course_id: str,
    principal: CurrentUser,
    container: AppContainer,
) -> EnrollmentCheckOut:
    """``enrolled`` means the enrollment currently unlocks the videos.

    A pending or failed payment reports enrolled=false together with the
    status, so the front end can show "complete your purchase".
    """
    enrollment = await container.enrollment_service.get_enrollment(principal.user_id, course_id)
    if enrollment is None:
        return EnrollmentCheckOut(enrolled=False)
    return EnrollmentCheckOut(
        enrolled=enrollment.grants_access,
        payment_status=enrollment.payment_status,
    )
