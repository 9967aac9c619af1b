"""Enrollment creation and payment-status administration.

Each course pricing model maps to one pure function that builds the
initial enrollment:

  free    enrollment_type="free",   payment_status="free"       access now
  paid    enrollment_type="paid",   payment_status="pending"    access after payment
  bundle  enrollment_type="bundle", payment_status="pending"    access after payment

Adding a pricing model means adding one function and one dict entry.  The
enrollment gate never sees this table; it only reads payment_status.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from coursekit.core.clock import Clock, iso_timestamp, utcnow
from coursekit.core.errors import NotFound
from coursekit.models.course import Course, PricingModel
from coursekit.models.enrollment import PAYMENT_STATUSES, Enrollment, PaymentStatus
from coursekit.repos.catalog_repo import CatalogRepo
from coursekit.repos.enrollment_repo import EnrollmentRepo
from coursekit.repos.kv_store import store_deadline

logger = logging.getLogger(__name__)


def free_enrollment(learner_id: str, course: Course, enrolled_at: str) -> Enrollment:
    return Enrollment(
        learner_id=learner_id,
        course_id=course.id,
        enrollment_type="free",
        payment_status="free",
        enrolled_at=enrolled_at,
    )


def paid_enrollment(learner_id: str, course: Course, enrolled_at: str) -> Enrollment:
    return Enrollment(
        learner_id=learner_id,
        course_id=course.id,
        enrollment_type="paid",
        payment_status="pending",
        enrolled_at=enrolled_at,
    )


def bundle_enrollment(learner_id: str, course: Course, enrolled_at: str) -> Enrollment:
    return Enrollment(
        learner_id=learner_id,
        course_id=course.id,
        enrollment_type="bundle",
        payment_status="pending",
        enrolled_at=enrolled_at,
    )


ENROLLMENT_BUILDERS: dict[PricingModel, Callable[[str, Course, str], Enrollment]] = {
    "free": free_enrollment,
    "paid": paid_enrollment,
    "bundle": bundle_enrollment,
}


def new_enrollment(learner_id: str, course: Course, enrolled_at: str) -> Enrollment:
    return ENROLLMENT_BUILDERS[course.pricing_model](learner_id, course, enrolled_at)


@dataclass(frozen=True, slots=True)
class EnrollResult:
    enrollment: Enrollment
    created: bool


class EnrollmentService:
    def __init__(
        self,
        enrollments: EnrollmentRepo,
        catalog: CatalogRepo,
        *,
        timeout_seconds: float = 2.0,
        clock: Clock = utcnow,
    ) -> None:
        self._enrollments = enrollments
        self._catalog = catalog
        self._timeout_seconds = timeout_seconds
        self._clock = clock

    async def enroll(self, learner_id: str, course_id: str) -> EnrollResult:
        """Enroll once; repeat calls return the existing enrollment."""
        async with store_deadline(self._timeout_seconds):
            existing = await self._enrollments.get(learner_id, course_id)
            if existing is not None:
                return EnrollResult(existing, created=False)

            course = await self._catalog.get_course(course_id)
            if course is None:
                raise NotFound("Course not found")

            enrollment = new_enrollment(learner_id, course, iso_timestamp(self._clock()))
            if not await self._enrollments.create(enrollment):
                # A concurrent request for the same learner got there first.
                winner = await self._enrollments.get(learner_id, course_id)
                return EnrollResult(winner or enrollment, created=False)

        logger.info(
            "Learner enrolled (%s/%s)",
            enrollment.enrollment_type,
            enrollment.payment_status,
            extra={"learner_id": learner_id, "course_id": course_id},
        )
        return EnrollResult(enrollment, created=True)

    async def list_enrollments(self, learner_id: str) -> list[Enrollment]:
        async with store_deadline(self._timeout_seconds):
            return await self._enrollments.list_for_learner(learner_id)

    async def get_enrollment(self, learner_id: str, course_id: str) -> Enrollment | None:
        async with store_deadline(self._timeout_seconds):
            return await self._enrollments.get(learner_id, course_id)

    async def set_payment_status(
        self, learner_id: str, course_id: str, status: PaymentStatus
    ) -> Enrollment:
        if status not in PAYMENT_STATUSES:
            raise ValueError(f"unknown payment status {status!r}")
        async with store_deadline(self._timeout_seconds):
            updated = await self._enrollments.set_payment_status(learner_id, course_id, status)
        if updated is None:
            raise NotFound("Enrollment not found")
        logger.info(
            "Payment status set to %s",
            status,
            extra={"learner_id": learner_id, "course_id": course_id},
        )
        return updated
