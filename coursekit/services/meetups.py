"""Weekly community meetups.

The catalogue is static configuration.  Schedules are validated when this
module is imported, so a typo in a day or timezone stops the process at
startup instead of surfacing on the first GET /v1/meetups.

The meeting link is only handed out while a session is live.
"""

from __future__ import annotations

import logging
from datetime import datetime

from coursekit.core.clock import Clock, iso_timestamp, utcnow
from coursekit.core.errors import NotFound
from coursekit.models.meetup import Meetup, UpcomingMeetup, WeeklySchedule
from coursekit.repos.kv_store import store_deadline
from coursekit.repos.signup_repo import MeetupSignupRepo
from coursekit.services.recurrence import list_upcoming

logger = logging.getLogger(__name__)

MEETUPS: tuple[Meetup, ...] = (
    Meetup(
        id="spec-driven-dev-weekly",
        title="Spec Driven Development & Context Engineering",
        description=(
            "Weekly discussion on spec-driven workflows, context engineering, "
            "best practices, and Q&A."
        ),
        schedule=WeeklySchedule(day_of_week=6, hour=10, minute=0, timezone="America/Chicago"),
        duration_minutes=60,
        meeting_link="https://zoom.us/j/0000000000",
        host_name="Rico Martinez",
        host_email="rico@learnermax.com",
    ),
)


class MeetupService:
    def __init__(
        self,
        signups: MeetupSignupRepo,
        *,
        meetups: tuple[Meetup, ...] = MEETUPS,
        timeout_seconds: float = 2.0,
        clock: Clock = utcnow,
    ) -> None:
        self._signups = signups
        self._meetups = {meetup.id: meetup for meetup in meetups}
        self._timeout_seconds = timeout_seconds
        self._clock = clock

    def get(self, meetup_id: str) -> Meetup:
        meetup = self._meetups.get(meetup_id)
        if meetup is None:
            raise NotFound("Meetup not found")
        return meetup

    async def list_meetups(self, learner_id: str, now: datetime) -> list[UpcomingMeetup]:
        async with store_deadline(self._timeout_seconds):
            signed_up = await self._signups.meetup_ids_for(learner_id)

        listings = []
        for meetup in self._meetups.values():
            upcoming = list_upcoming(meetup.schedule, meetup.duration_minutes, now)
            listings.append(
                UpcomingMeetup(
                    meetup=meetup,
                    next_occurrence=upcoming.next_occurrence,
                    is_live=upcoming.is_live,
                    is_signed_up=meetup.id in signed_up,
                    meeting_link=meetup.meeting_link if upcoming.is_live else None,
                )
            )
        return listings

    async def signup(self, learner_id: str, meetup_id: str) -> bool:
        """Register interest.  True for a new signup, False if already signed up."""
        meetup = self.get(meetup_id)
        async with store_deadline(self._timeout_seconds):
            created = await self._signups.create(
                learner_id, meetup.id, iso_timestamp(self._clock())
            )
        if created:
            logger.info("Meetup signup", extra={"learner_id": learner_id, "meetup_id": meetup_id})
        return created
