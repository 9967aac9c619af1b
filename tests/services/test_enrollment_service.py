from __future__ import annotations

import asyncio

import pytest

from coursekit.container import Container
from coursekit.core.errors import NotFound
from coursekit.models.course import Course
from coursekit.services.enrollment_service import (
    bundle_enrollment,
    free_enrollment,
    new_enrollment,
    paid_enrollment,
)
from tests.conftest import FREE_COURSE, PAID_COURSE

ENROLLED_AT = "2025-01-15T10:00:00.000Z"


# ---- pure builders ----


@pytest.mark.parametrize(
    ("pricing", "expected"),
    [
        ("free", ("free", "free")),
        ("paid", ("paid", "pending")),
        ("bundle", ("bundle", "pending")),
    ],
)
def test_new_enrollment_per_pricing_model(pricing: str, expected: tuple[str, str]) -> None:
    course = Course(id="c1", name="Course", pricing_model=pricing)  # type: ignore[arg-type]
    enrollment = new_enrollment("learner-1", course, ENROLLED_AT)
    assert (enrollment.enrollment_type, enrollment.payment_status) == expected
    assert enrollment.progress == 0
    assert enrollment.completed is False


def test_only_free_enrollment_grants_access_immediately() -> None:
    course = Course(id="c1", name="Course")
    assert free_enrollment("l", course, ENROLLED_AT).grants_access is True
    assert paid_enrollment("l", course, ENROLLED_AT).grants_access is False
    assert bundle_enrollment("l", course, ENROLLED_AT).grants_access is False


# ---- service ----


def test_enroll_free_course(container: Container) -> None:
    result = asyncio.run(container.enrollment_service.enroll("learner-1", FREE_COURSE))
    assert result.created is True
    assert result.enrollment.payment_status == "free"


def test_enroll_is_idempotent(container: Container) -> None:
    service = container.enrollment_service

    async def run():
        first = await service.enroll("learner-1", PAID_COURSE)
        second = await service.enroll("learner-1", PAID_COURSE)
        return first, second, await service.list_enrollments("learner-1")

    first, second, listed = asyncio.run(run())
    assert first.created is True
    assert second.created is False
    assert second.enrollment == first.enrollment
    assert len(listed) == 1


def test_concurrent_enrolls_create_one_enrollment(container: Container) -> None:
    service = container.enrollment_service

    async def run():
        return await asyncio.gather(*(service.enroll("learner-1", FREE_COURSE) for _ in range(4)))

    results = asyncio.run(run())
    assert sum(r.created for r in results) == 1


def test_enroll_unknown_course_is_not_found(container: Container) -> None:
    with pytest.raises(NotFound, match="Course not found"):
        asyncio.run(container.enrollment_service.enroll("learner-1", "nope"))


def test_list_enrollments_is_per_learner(container: Container) -> None:
    service = container.enrollment_service

    async def run():
        await service.enroll("learner-1", FREE_COURSE)
        await service.enroll("learner-1", PAID_COURSE)
        await service.enroll("learner-2", FREE_COURSE)
        return await service.list_enrollments("learner-1")

    courses = {e.course_id for e in asyncio.run(run())}
    assert courses == {FREE_COURSE, PAID_COURSE}


def test_set_payment_status_transitions(container: Container) -> None:
    service = container.enrollment_service

    async def run():
        await service.enroll("learner-1", PAID_COURSE)
        updated = await service.set_payment_status("learner-1", PAID_COURSE, "completed")
        return updated, await service.list_enrollments("learner-1")

    updated, (stored,) = asyncio.run(run())
    assert updated.payment_status == "completed"
    assert updated.enrollment_type == "paid"
    assert stored.payment_status == "completed"


def test_set_payment_status_without_enrollment_is_not_found(container: Container) -> None:
    with pytest.raises(NotFound, match="Enrollment not found"):
        asyncio.run(
            container.enrollment_service.set_payment_status("learner-1", PAID_COURSE, "completed")
        )


def test_set_payment_status_rejects_unknown_status(container: Container) -> None:
    with pytest.raises(ValueError, match="unknown payment status"):
        asyncio.run(
            container.enrollment_service.set_payment_status(
                "learner-1", PAID_COURSE, "refunded"  # type: ignore[arg-type]
            )
        )
