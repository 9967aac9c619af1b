"""Prometheus metrics endpoint.

Scraped by Prometheus every N seconds; returns plain text in the
exposition format, not JSON.  See coursekit/core/metrics.py for the
inventory.

Restrict access in production (internal port or scraper allow-list):
request rates and denial counts reveal more than a learner should see.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
