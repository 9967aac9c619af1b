from __future__ import annotations

import asyncio
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from coursekit.container import Container
from coursekit.core.errors import NotFound

CHICAGO = ZoneInfo("America/Chicago")
MEETUP_ID = "spec-driven-dev-weekly"

# Saturdays, 10:00-11:00 America/Chicago.
BEFORE = datetime(2025, 1, 17, 12, 0, tzinfo=CHICAGO)  # Friday noon
DURING = datetime(2025, 1, 18, 10, 30, tzinfo=CHICAGO)


def test_meeting_link_hidden_before_session(container: Container) -> None:
    (listing,) = asyncio.run(container.meetups.list_meetups("learner-1", BEFORE))
    assert listing.is_live is False
    assert listing.meeting_link is None
    assert listing.next_occurrence == datetime(2025, 1, 18, 10, 0, tzinfo=CHICAGO)


def test_meeting_link_shown_while_live(container: Container) -> None:
    (listing,) = asyncio.run(container.meetups.list_meetups("learner-1", DURING))
    assert listing.is_live is True
    assert listing.meeting_link == listing.meetup.meeting_link
    # Next occurrence is the following week even while this one runs.
    assert listing.next_occurrence == datetime(2025, 1, 25, 10, 0, tzinfo=CHICAGO)


def test_signup_is_idempotent_and_per_learner(container: Container) -> None:
    meetups = container.meetups

    async def run():
        first = await meetups.signup("learner-1", MEETUP_ID)
        second = await meetups.signup("learner-1", MEETUP_ID)
        mine = await meetups.list_meetups("learner-1", BEFORE)
        theirs = await meetups.list_meetups("learner-2", BEFORE)
        return first, second, mine, theirs

    first, second, (mine,), (theirs,) = asyncio.run(run())
    assert (first, second) == (True, False)
    assert mine.is_signed_up is True
    assert theirs.is_signed_up is False


def test_signup_unknown_meetup_is_not_found(container: Container) -> None:
    with pytest.raises(NotFound, match="Meetup not found"):
        asyncio.run(container.meetups.signup("learner-1", "no-such-meetup"))
