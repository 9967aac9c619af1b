"""Redis connection management.

Redis is the service's key-value store: enrollments, progress records,
lesson catalogue entries and meetup signups all live in one keyspace,
addressed by (PK, SK) the way a single-table design addresses items.
See coursekit/repos/kv_store.py for the item layout.

When REDIS_URL is configured, a shared connection pool is created at
import time.  When it is not (local dev, tests), redis_pool is None and
the container falls back to the in-memory store; no Redis server is
needed.

WHY REDIS FOR THIS DATA
------------------------
The progress record needs exactly three primitives: point reads,
insert-if-absent, and "add a member to a set and touch a timestamp" as a
single atomic step.  SADD inside MULTI/EXEC gives the last one directly;
no read-modify-write ever happens in Python.  Run Redis with AOF
persistence (appendfsync everysec or stricter) in production: progress
records are durable state, not cache.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from urllib.parse import urlsplit

import redis.asyncio as aioredis

from coursekit.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,  # str in, str out
        max_connections=20,
        socket_timeout=SETTINGS.store_timeout_seconds,
    )
else:
    redis_pool = None


def redis_host(url: str) -> str:
    """host:port of a Redis URL; credentials and db path are dropped."""
    parts = urlsplit(url)
    host = parts.hostname or "localhost"
    return f"{host}:{parts.port}" if parts.port else host


@asynccontextmanager
async def lifespan_redis():
    """Startup/shutdown hook: verify connectivity, release the pool on exit.

    Unlike a cache, the store is not optional once configured.  A failed
    ping is logged, and requests will answer 503 (StoreUnavailable) until
    Redis comes back; the process itself keeps running so /health can
    report the problem.
    """
    if redis_pool is None:
        logger.info("No REDIS_URL configured; using the in-memory key-value store")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]  # redis stubs mistype async ping as bool
        logger.info("Redis connected: %s", redis_host(SETTINGS.redis_url))
    except Exception:
        logger.exception("Redis connection failed on startup")

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
