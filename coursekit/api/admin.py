from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from coursekit.api.courses import EnrollmentOut
from coursekit.api.dependencies import AppContainer, require_role
from coursekit.models.enrollment import PaymentStatus
from coursekit.models.principal import Principal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


class PaymentStatusIn(BaseModel):
    learner_id: str = Field(min_length=1)
    course_id: str = Field(min_length=1)
    payment_status: PaymentStatus


@router.post("/enrollments/payment-status", response_model=EnrollmentOut)
async def set_payment_status(
    body: PaymentStatusIn,
    principal: Annotated[Principal, Depends(require_role("admin"))],
    container: AppContainer,
) -> EnrollmentOut:
    """Record a checkout result or a refund.

    "completed" unlocks media on the learner's next request; "failed"
    locks it again.  Credentials already issued run out on their own.
    """
    logger.info(
        "Payment status change requested by user=%s",
        principal.user_id,
        extra={"learner_id": body.learner_id, "course_id": body.course_id},
    )
    enrollment = await container.enrollment_service.set_payment_status(
        body.learner_id, body.course_id, body.payment_status
    )
    return EnrollmentOut.of(enrollment)
