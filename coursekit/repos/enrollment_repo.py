from __future__ import annotations

from coursekit.models.enrollment import Enrollment, PaymentStatus
from coursekit.repos.kv_store import KeyValueStore


def _pk(learner_id: str) -> str:
    return f"USER#{learner_id}"


def _sk(course_id: str) -> str:
    return f"COURSE#{course_id}"


class EnrollmentRepo:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def get(self, learner_id: str, course_id: str) -> Enrollment | None:
        item = await self._store.get(_pk(learner_id), _sk(course_id))
        return None if item is None else Enrollment.from_item(item)

    async def create(self, enrollment: Enrollment) -> bool:
        """Insert unless the learner is already enrolled.  True if inserted."""
        return await self._store.put_if_absent(
            _pk(enrollment.learner_id), _sk(enrollment.course_id), enrollment.to_item()
        )

    async def list_for_learner(self, learner_id: str) -> list[Enrollment]:
        items = await self._store.query(_pk(learner_id), "COURSE#")
        return [Enrollment.from_item(item) for item in items]

    async def set_payment_status(
        self, learner_id: str, course_id: str, status: PaymentStatus
    ) -> Enrollment | None:
        """Change payment_status on an existing enrollment.

        Returns None if there is no enrollment; this never creates one.
        """
        if await self.get(learner_id, course_id) is None:
            return None
        item = await self._store.update(
            _pk(learner_id), _sk(course_id), {"paymentStatus": status}
        )
        return Enrollment.from_item(item)
