"""Single-table key-value store.

Every entity (course, lesson, enrollment, progress, meetup signup) is an
item addressed by a partition key and a sort key:

  PK                     SK                        entity
  COURSE#<courseId>      METADATA                  course
  CATALOG                COURSE#<courseId>         course (catalogue index)
  COURSE#<courseId>      LESSON#<lessonId>         lesson
  USER#<learnerId>       COURSE#<courseId>         enrollment
  STUDENT#<learnerId>    PROGRESS#<courseId>       progress record
  STUDENT#<learnerId>    MEETUP_SIGNUP#<meetupId>  meetup signup

Items hold scalar attributes (str, int, bool, None) plus, for progress
records, one string-set attribute.

THE ONE PRIMITIVE THAT MATTERS
-------------------------------
add_to_set() adds a member to a set attribute AND sets scalar fields in a
single atomic step, returning the resulting item.  Progress completion is
built on it.  The obvious alternative:

    item = await store.get(pk, sk)          # tab A reads {1}
    item["done"].add(lesson)                # tab B reads {1}
    await store.update(pk, sk, item)        # A writes {1,2}, B writes {1,3}

silently drops lesson 2.  Nothing in this package writes a whole set back.

IMPLEMENTATIONS
----------------
InMemoryKeyValueStore: dev/test.  No mutation awaits between reading
  and writing, so each call is atomic on the event loop.
RedisKeyValueStore: production.  One hash per item, one Redis set per set
  attribute, one index set per partition for prefix queries.  Conditional
  insert runs as a Lua script; update and add_to_set run inside
  MULTI/EXEC together with the read-back.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import asynccontextmanager
from typing import Any, Protocol, runtime_checkable

from redis.exceptions import RedisError

from coursekit.core.errors import StoreUnavailable

Item = dict[str, Any]

# Set-valued attributes of the table.  Redis needs them declared up front
# so a point read can fetch hash and sets in one transaction.
SET_ATTRIBUTES = frozenset({"completedLessons"})


@runtime_checkable
class KeyValueStore(Protocol):
    async def get(self, pk: str, sk: str) -> Item | None:
        """Point read.  Returns None when the item does not exist."""
        ...

    async def put_if_absent(self, pk: str, sk: str, item: Mapping[str, Any]) -> bool:
        """Insert scalar attributes unless the item exists.  True if inserted."""
        ...

    async def update(self, pk: str, sk: str, fields: Mapping[str, Any]) -> Item:
        """Upsert scalar fields and return the resulting item."""
        ...

    async def add_to_set(
        self,
        pk: str,
        sk: str,
        set_field: str,
        member: str,
        fields: Mapping[str, Any],
    ) -> Item:
        """Atomically add member to a set attribute and set scalar fields."""
        ...

    async def query(self, pk: str, sk_prefix: str = "") -> list[Item]:
        """All items in a partition whose sort key starts with sk_prefix."""
        ...


@asynccontextmanager
async def store_deadline(seconds: float) -> AsyncIterator[None]:
    """Bound a block of store calls; a timeout surfaces as StoreUnavailable."""
    try:
        async with asyncio.timeout(seconds):
            yield
    except TimeoutError:
        raise StoreUnavailable(f"store operation exceeded {seconds}s") from None


def _snapshot(item: Mapping[str, Any]) -> Item:
    return {
        key: frozenset(value) if isinstance(value, (set, frozenset)) else value
        for key, value in item.items()
    }


class InMemoryKeyValueStore:
    """Process-local store for dev and tests.

    Not shared across processes.  A fresh instance per test keeps state
    from bleeding between tests.
    """

    def __init__(self) -> None:
        self._items: dict[tuple[str, str], dict[str, Any]] = {}

    async def get(self, pk: str, sk: str) -> Item | None:
        item = self._items.get((pk, sk))
        return None if item is None else _snapshot(item)

    async def put_if_absent(self, pk: str, sk: str, item: Mapping[str, Any]) -> bool:
        key = (pk, sk)
        if key in self._items:
            return False
        self._items[key] = {
            k: set(v) if isinstance(v, (set, frozenset)) else v for k, v in item.items()
        }
        return True

    async def update(self, pk: str, sk: str, fields: Mapping[str, Any]) -> Item:
        item = self._items.setdefault((pk, sk), {})
        item.update(fields)
        return _snapshot(item)

    async def add_to_set(
        self,
        pk: str,
        sk: str,
        set_field: str,
        member: str,
        fields: Mapping[str, Any],
    ) -> Item:
        item = self._items.setdefault((pk, sk), {})
        item.setdefault(set_field, set()).add(member)
        item.update(fields)
        return _snapshot(item)

    async def query(self, pk: str, sk_prefix: str = "") -> list[Item]:
        return [
            _snapshot(item)
            for (item_pk, item_sk), item in sorted(self._items.items())
            if item_pk == pk and item_sk.startswith(sk_prefix)
        ]


class RedisKeyValueStore:
    """Redis-backed store shared by every API instance.

    Layout (prefix keeps the table apart from anything else in the db):
      kv:<pk>/<sk>                 hash of JSON-encoded scalar attributes
      kv:<pk>/<sk>/set:<field>     Redis set for each set attribute
      kv-index:<pk>                set of sort keys present in the partition
    """

    _PREFIX = "kv:"
    _INDEX_PREFIX = "kv-index:"

    # KEYS[1] = item hash, KEYS[2] = partition index
    # ARGV[1] = sort key, ARGV[2..] = field, value, field, value, ...
    # EXISTS + HSET must not interleave with another writer, hence Lua.
    _INSERT_LUA = """
    if redis.call('EXISTS', KEYS[1]) == 1 then
        return 0
    end
    redis.call('HSET', KEYS[1], unpack(ARGV, 2))
    redis.call('SADD', KEYS[2], ARGV[1])
    return 1
    """

    def __init__(
        self,
        redis_client,
        set_fields: Iterable[str] = SET_ATTRIBUTES,
    ) -> None:
        self._redis = redis_client
        self._set_fields = tuple(sorted(set_fields))
        self._insert_script = None

    def _item_key(self, pk: str, sk: str) -> str:
        return f"{self._PREFIX}{pk}/{sk}"

    def _set_key(self, pk: str, sk: str, field: str) -> str:
        return f"{self._item_key(pk, sk)}/set:{field}"

    def _index_key(self, pk: str) -> str:
        return f"{self._INDEX_PREFIX}{pk}"

    @asynccontextmanager
    async def _guard(self) -> AsyncIterator[None]:
        try:
            yield
        except RedisError as exc:
            raise StoreUnavailable(f"redis error: {exc.__class__.__name__}") from exc

    # -- encoding ------------------------------------------------------------

    @staticmethod
    def _encode(fields: Mapping[str, Any]) -> dict[str, str]:
        encoded = {}
        for name, value in fields.items():
            if isinstance(value, (set, frozenset)):
                raise ValueError(f"set attribute {name!r} must go through add_to_set")
            encoded[name] = json.dumps(value)
        return encoded

    def _queue_read(self, pipe, pk: str, sk: str) -> None:
        pipe.hgetall(self._item_key(pk, sk))
        for field in self._set_fields:
            pipe.smembers(self._set_key(pk, sk, field))

    @property
    def _read_width(self) -> int:
        return 1 + len(self._set_fields)

    def _decode(self, results: list[Any]) -> Item | None:
        raw_hash, *raw_sets = results
        item: Item = {name: json.loads(value) for name, value in raw_hash.items()}
        for field, members in zip(self._set_fields, raw_sets):
            if members:
                item[field] = frozenset(members)
        return item or None

    # -- operations ----------------------------------------------------------

    async def get(self, pk: str, sk: str) -> Item | None:
        async with self._guard():
            async with self._redis.pipeline(transaction=True) as pipe:
                self._queue_read(pipe, pk, sk)
                results = await pipe.execute()
        return self._decode(results)

    async def put_if_absent(self, pk: str, sk: str, item: Mapping[str, Any]) -> bool:
        encoded = self._encode(item)
        if not encoded:
            raise ValueError("cannot insert an empty item")
        args: list[str] = [sk]
        for name, value in encoded.items():
            args.extend((name, value))

        async with self._guard():
            if self._insert_script is None:
                self._insert_script = self._redis.register_script(self._INSERT_LUA)
            inserted = await self._insert_script(
                keys=[self._item_key(pk, sk), self._index_key(pk)],
                args=args,
            )
        return bool(inserted)

    async def update(self, pk: str, sk: str, fields: Mapping[str, Any]) -> Item:
        encoded = self._encode(fields)
        async with self._guard():
            async with self._redis.pipeline(transaction=True) as pipe:
                queued = 0
                if encoded:
                    pipe.hset(self._item_key(pk, sk), mapping=encoded)
                    queued += 1
                pipe.sadd(self._index_key(pk), sk)
                queued += 1
                self._queue_read(pipe, pk, sk)
                results = await pipe.execute()
        return self._decode(results[queued:]) or {}

    async def add_to_set(
        self,
        pk: str,
        sk: str,
        set_field: str,
        member: str,
        fields: Mapping[str, Any],
    ) -> Item:
        if set_field not in self._set_fields:
            raise ValueError(f"{set_field!r} is not a declared set attribute")
        encoded = self._encode(fields)

        async with self._guard():
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.sadd(self._set_key(pk, sk, set_field), member)
                queued = 1
                if encoded:
                    pipe.hset(self._item_key(pk, sk), mapping=encoded)
                    queued += 1
                pipe.sadd(self._index_key(pk), sk)
                queued += 1
                self._queue_read(pipe, pk, sk)
                results = await pipe.execute()
        return self._decode(results[queued:]) or {}

    async def query(self, pk: str, sk_prefix: str = "") -> list[Item]:
        async with self._guard():
            sort_keys = await self._redis.smembers(self._index_key(pk))
            matching = sorted(sk for sk in sort_keys if sk.startswith(sk_prefix))
            if not matching:
                return []
            async with self._redis.pipeline(transaction=True) as pipe:
                for sk in matching:
                    self._queue_read(pipe, pk, sk)
                results = await pipe.execute()

        width = self._read_width
        items = []
        for offset in range(0, len(results), width):
            item = self._decode(results[offset : offset + width])
            if item is not None:
                items.append(item)
        return items
