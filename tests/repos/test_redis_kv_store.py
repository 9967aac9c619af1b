"""RedisKeyValueStore against a live Redis server.

Skipped unless REDIS_URL points at a disposable database:

    docker run --rm -p 6379:6379 redis:7
    REDIS_URL=redis://localhost:6379/15 pytest -m redis -v

Every test works under a random partition key, so nothing collides with
other data in the database.
"""

from __future__ import annotations

import asyncio
import os
import uuid

import pytest
import redis.asyncio as aioredis

from coursekit.core.errors import StoreUnavailable
from coursekit.repos.kv_store import RedisKeyValueStore

REDIS_URL = os.getenv("REDIS_URL")

pytestmark = [
    pytest.mark.redis,
    pytest.mark.skipif(not REDIS_URL, reason="REDIS_URL not set"),
]


def _run(scenario):
    """Run scenario(store, pk) on a fresh client bound to this event loop."""

    async def main():
        client = aioredis.from_url(REDIS_URL, decode_responses=True)
        try:
            return await scenario(RedisKeyValueStore(client), f"TEST#{uuid.uuid4().hex}")
        finally:
            await client.aclose()

    return asyncio.run(main())


def test_put_if_absent_and_get() -> None:
    async def scenario(store, pk):
        first = await store.put_if_absent(pk, "COURSE#c", {"paymentStatus": "pending", "n": 1})
        second = await store.put_if_absent(pk, "COURSE#c", {"paymentStatus": "free"})
        return first, second, await store.get(pk, "COURSE#c"), await store.get(pk, "nope")

    first, second, item, missing = _run(scenario)
    assert (first, second) == (True, False)
    assert item == {"paymentStatus": "pending", "n": 1}
    assert missing is None


def test_scalar_types_round_trip() -> None:
    async def scenario(store, pk):
        return await store.update(
            pk, "META", {"s": "x", "i": 3, "b": True, "none": None}
        )

    assert _run(scenario) == {"s": "x", "i": 3, "b": True, "none": None}


def test_concurrent_set_adds_lose_nothing() -> None:
    lessons = [f"lesson-{i}" for i in range(20)]

    async def scenario(store, pk):
        await asyncio.gather(
            *(
                store.add_to_set(pk, "PROGRESS#c", "completedLessons", lesson, {"t": lesson})
                for lesson in lessons
            )
        )
        return await store.get(pk, "PROGRESS#c")

    item = _run(scenario)
    assert item["completedLessons"] == frozenset(lessons)
    assert item["t"] in lessons


def test_query_by_prefix() -> None:
    async def scenario(store, pk):
        await store.put_if_absent(pk, "COURSE#b", {"courseId": "b"})
        await store.put_if_absent(pk, "COURSE#a", {"courseId": "a"})
        await store.add_to_set(pk, "PROGRESS#a", "completedLessons", "l1", {})
        return await store.query(pk, "COURSE#")

    assert [item["courseId"] for item in _run(scenario)] == ["a", "b"]


def test_undeclared_set_attribute_is_rejected() -> None:
    async def scenario(store, pk):
        await store.add_to_set(pk, "X", "tags", "t", {})

    with pytest.raises(ValueError, match="not a declared set attribute"):
        _run(scenario)


def test_unreachable_server_is_store_unavailable() -> None:
    async def main():
        client = aioredis.from_url("redis://127.0.0.1:1/0", socket_connect_timeout=0.2)
        try:
            await RedisKeyValueStore(client).get("PK", "SK")
        finally:
            await client.aclose()

    with pytest.raises(StoreUnavailable):
        asyncio.run(main())
