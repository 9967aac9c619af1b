"""Enrollment check that runs before any media credential is issued.

Re-read on every request; decisions are never cached.  A refund flips
payment_status to "failed" and the very next video request is refused.

The gate only looks at payment_status.  How the enrollment came to exist
(free sign-up, checkout, bundle) is the enrollment service's business.
"""

from __future__ import annotations

import logging

from coursekit.core.errors import Forbidden
from coursekit.core.metrics import ACCESS_DENIED
from coursekit.repos.enrollment_repo import EnrollmentRepo
from coursekit.repos.kv_store import store_deadline

logger = logging.getLogger(__name__)


class EnrollmentGate:
    def __init__(self, enrollments: EnrollmentRepo, *, timeout_seconds: float = 2.0) -> None:
        self._enrollments = enrollments
        self._timeout_seconds = timeout_seconds

    async def authorize(self, learner_id: str, course_id: str) -> None:
        """Return silently, or raise Forbidden("not enrolled").

        An unknown course and an unpaid enrollment raise the same error so
        the response does not reveal which course ids exist.
        """
        async with store_deadline(self._timeout_seconds):
            enrollment = await self._enrollments.get(learner_id, course_id)

        if enrollment is not None and enrollment.grants_access:
            return

        ACCESS_DENIED.inc()
        logger.info(
            "Media access denied",
            extra={
                "learner_id": learner_id,
                "course_id": course_id,
                "payment_status": enrollment.payment_status if enrollment else None,
            },
        )
        raise Forbidden()
