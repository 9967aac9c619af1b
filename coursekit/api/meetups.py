from __future__ import annotations

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from coursekit.api.dependencies import AppContainer, CurrentUser

router = APIRouter(prefix="/v1/meetups", tags=["meetups"])


class MeetupOut(BaseModel):
    meetup_id: str
    title: str
    description: str
    next_occurrence: str  # ISO-8601 with the meetup's local offset
    is_live: bool
    is_signed_up: bool
    duration_minutes: int
    host_name: str
    meeting_link: str | None = None  # only while live


class SignupOut(BaseModel):
    meetup_id: str
    signed_up: bool = True


@router.get("", response_model=list[MeetupOut], response_model_exclude_none=True)
async def list_meetups(
    principal: CurrentUser,
    container: AppContainer,
) -> list[MeetupOut]:
    listings = await container.meetups.list_meetups(principal.user_id, container.clock())
    return [
        MeetupOut(
            meetup_id=item.meetup.id,
            title=item.meetup.title,
            description=item.meetup.description,
            next_occurrence=item.next_occurrence.isoformat(),
            is_live=item.is_live,
            is_signed_up=item.is_signed_up,
            duration_minutes=item.meetup.duration_minutes,
            host_name=item.meetup.host_name,
            meeting_link=item.meeting_link,
        )
        for item in listings
    ]


@router.post("/{meetup_id}/signup", response_model=SignupOut)
async def signup(
    meetup_id: str,
    principal: CurrentUser,
    container: AppContainer,
    response: Response,
) -> SignupOut:
    created = await container.meetups.signup(principal.user_id, meetup_id)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return SignupOut(meetup_id=meetup_id)
