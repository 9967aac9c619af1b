"""Video access endpoints.

Both routes go through MediaAccess, which runs the enrollment gate before
anything is signed.  Responses carry credentials, so they are marked
no-store; a shared cache must never hand one learner's URL to another.

  /video-url     signed URL for one lesson's video file
  /video-access  cookie VALUES for the whole course (HLS playback).  The
                 web front end sets them as cookies on the CDN domain;
                 this API cannot, it lives on a different host.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response
from pydantic import BaseModel

from coursekit.api.dependencies import AppContainer, CurrentUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/courses/{course_id}", tags=["media"])


class VideoUrlOut(BaseModel):
    video_url: str
    expires_at: int


class VideoAccessOut(BaseModel):
    cookies: dict[str, str]
    resource: str
    expires_at: int


@router.get("/lessons/{lesson_id}/video-url", response_model=VideoUrlOut)
async def get_video_url(
    course_id: str,
    lesson_id: str,
    principal: CurrentUser,
    container: AppContainer,
    response: Response,
) -> VideoUrlOut:
    token = await container.media.issue_lesson_video_url(
        principal.user_id, course_id, lesson_id
    )
    logger.info(
        "Video URL issued (key_id=%s expires_at=%d)",
        token.key_id,
        token.expires_at,
        extra={"learner_id": principal.user_id, "course_id": course_id, "lesson_id": lesson_id},
    )
    response.headers["Cache-Control"] = "no-store"
    return VideoUrlOut(video_url=token.url, expires_at=token.expires_at)


@router.get("/video-access", response_model=VideoAccessOut)
async def get_video_access(
    course_id: str,
    principal: CurrentUser,
    container: AppContainer,
    response: Response,
) -> VideoAccessOut:
    course_pass = await container.media.authorize_and_issue_course_pass(
        principal.user_id, course_id
    )
    logger.info(
        "Course pass issued (key_id=%s expires_at=%d)",
        course_pass.key_id,
        course_pass.expires_at,
        extra={"learner_id": principal.user_id, "course_id": course_id},
    )
    response.headers["Cache-Control"] = "no-store"
    return VideoAccessOut(
        cookies=course_pass.cookies(),
        resource=course_pass.resource,
        expires_at=course_pass.expires_at,
    )
