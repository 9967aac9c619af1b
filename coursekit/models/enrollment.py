from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping

EnrollmentType = Literal["free", "paid", "bundle"]
PaymentStatus = Literal["free", "pending", "completed", "failed"]

PAYMENT_STATUSES: tuple[PaymentStatus, ...] = ("free", "pending", "completed", "failed")

# Only these statuses unlock media.  "pending" enrollments exist (checkout
# started) but grant nothing; "failed" is a declined or refunded payment.
ACCESS_GRANTING_STATUSES: frozenset[str] = frozenset({"free", "completed"})


@dataclass(frozen=True, slots=True)
class Enrollment:
    """A learner's access right to one course.

    Created once per (learner, course).  Afterwards only payment_status
    changes; enrollments are never deleted.
    """

    learner_id: str
    course_id: str
    enrollment_type: EnrollmentType
    payment_status: PaymentStatus
    enrolled_at: str
    progress: int = 0
    completed: bool = False

    def __post_init__(self) -> None:
        if self.payment_status not in PAYMENT_STATUSES:
            raise ValueError(f"unknown payment status {self.payment_status!r}")

    @property
    def grants_access(self) -> bool:
        return self.payment_status in ACCESS_GRANTING_STATUSES

    def to_item(self) -> dict[str, Any]:
        return {
            "entityType": "ENROLLMENT",
            "userId": self.learner_id,
            "courseId": self.course_id,
            "enrollmentType": self.enrollment_type,
            "paymentStatus": self.payment_status,
            "enrolledAt": self.enrolled_at,
            "progress": self.progress,
            "completed": self.completed,
        }

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> Enrollment:
        return cls(
            learner_id=item["userId"],
            course_id=item["courseId"],
            enrollment_type=item["enrollmentType"],
            payment_status=item["paymentStatus"],
            enrolled_at=item["enrolledAt"],
            progress=int(item.get("progress", 0)),
            completed=bool(item.get("completed", False)),
        )
