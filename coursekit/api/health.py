"""Health and readiness endpoints.

LIVENESS vs READINESS
----------------------
  /health (liveness):
    "Is this process alive?"  Always 200; the status field says whether a
    dependency is impaired.  Returning 503 here would make the
    orchestrator restart a process that is fine and merely waiting on
    Redis.

  /ready (readiness):
    "Should the load balancer send traffic here?"  503 while a configured
    key-value store cannot be reached: every enrollment, progress and
    video request would fail anyway.

WHAT IS CHECKED
----------------
  store:  Redis ping when REDIS_URL is set, "in_memory" otherwise.
  media:  "ok" once the signing key has been loaded, "cold" while it has
          not been fetched yet (it is fetched on the first video request),
          "disabled" when media signing is not configured.

The secret store is deliberately not called from here.  A probe every few
seconds would turn one secret fetch per process into thousands.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Response
from redis.exceptions import RedisError

from coursekit.db.redis import redis_pool

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _store_status() -> str:
    if redis_pool is None:
        return "in_memory"
    try:
        await redis_pool.ping()  # type: ignore[misc]
    except (RedisError, OSError) as exc:
        logger.warning("Redis health check failed: %s", exc.__class__.__name__)
        return "degraded"
    return "ok"


def _media_status(request: Request) -> str:
    container = request.app.state.container
    if not container.media_enabled:
        return "disabled"
    return "ok" if container.key_cache.is_loaded else "cold"


@router.get("/health")
async def health(request: Request) -> dict:
    checks = {
        "store": await _store_status(),
        "media": _media_status(request),
    }
    overall = "degraded" if "degraded" in checks.values() else "ok"
    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready() -> Response:
    if await _store_status() == "degraded":
        return Response(status_code=503)
    return Response(status_code=200)
