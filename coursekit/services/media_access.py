"""Authorize-then-issue: the only way route handlers obtain media credentials.

Every function awaits the enrollment gate to completion before the issuer
is touched.  A denied request never triggers a signing-key fetch.
"""

from __future__ import annotations

from coursekit.core.errors import NotFound
from coursekit.models.credential import CoursePass, ResourceToken
from coursekit.repos.catalog_repo import CatalogRepo
from coursekit.repos.kv_store import store_deadline
from coursekit.services.credential_issuer import CredentialIssuer
from coursekit.services.enrollment_gate import EnrollmentGate


def course_path_prefix(course_id: str) -> str:
    return f"courses/{course_id}"


class MediaAccess:
    def __init__(
        self,
        gate: EnrollmentGate,
        issuer: CredentialIssuer,
        catalog: CatalogRepo,
        *,
        video_url_expiry_minutes: int = 30,
        timeout_seconds: float = 2.0,
    ) -> None:
        self._gate = gate
        self._issuer = issuer
        self._catalog = catalog
        self._expiry_minutes = video_url_expiry_minutes
        self._timeout_seconds = timeout_seconds

    async def authorize_and_issue_resource_token(
        self, learner_id: str, course_id: str, resource_key: str, expiry_minutes: int
    ) -> ResourceToken:
        await self._gate.authorize(learner_id, course_id)
        return await self._issuer.issue_resource_token(resource_key, expiry_minutes)

    async def authorize_and_issue_course_pass(self, learner_id: str, course_id: str) -> CoursePass:
        await self._gate.authorize(learner_id, course_id)
        return await self._issuer.issue_course_pass(course_path_prefix(course_id))

    async def issue_lesson_video_url(
        self, learner_id: str, course_id: str, lesson_id: str
    ) -> ResourceToken:
        await self._gate.authorize(learner_id, course_id)
        async with store_deadline(self._timeout_seconds):
            lesson = await self._catalog.get_lesson(course_id, lesson_id)
        if lesson is None:
            raise NotFound("Lesson not found")
        return await self._issuer.issue_resource_token(lesson.video_key, self._expiry_minutes)
