"""Redis implementation of the association store."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError, WatchError

from vinsync._redact import redact_url
from vinsync.exceptions import VinStoreError
from vinsync.store.operations import (
    ConditionalTransaction,
    Delete,
    Guard,
    HashDelete,
    HashFieldEquals,
    HashGetAll,
    HashSet,
    KeyAbsent,
    Read,
    SetAdd,
    StringEquals,
    StringGet,
    StringSet,
    Write,
)

if TYPE_CHECKING:
    from vinsync.config import VinSyncConfig

_logger = logging.getLogger(__name__)

_SCAN_COUNT = 500


class RedisAssociationStore:
    """Association store backed by ``redis.asyncio``.

    Reads go through a non-transactional pipeline (one round trip).  Commits
    use optimistic locking: ``WATCH`` the guarded keys, evaluate the guards,
    then ``MULTI``/``EXEC`` the writes.  If another client touches a watched
    key in between, ``EXEC`` is rejected and :meth:`commit` returns ``False``.
    """

    def __init__(self, client: aioredis.Redis) -> None:
        self._redis = client

    @classmethod
    def from_config(cls, config: VinSyncConfig) -> RedisAssociationStore:
        _logger.debug("Creating Redis client for %s", redact_url(config.redis_url))
        client = aioredis.Redis.from_url(
            config.redis_url,
            decode_responses=True,
            socket_connect_timeout=config.connect_timeout,
            socket_timeout=config.operation_timeout,
            health_check_interval=config.health_check_interval,
            socket_keepalive=True,
        )
        return cls(client)

    async def read_many(self, reads: Sequence[Read]) -> list[Any]:
        try:
            async with self._redis.pipeline(transaction=False) as pipe:
                for read in reads:
                    if isinstance(read, HashGetAll):
                        pipe.hgetall(read.key)
                    elif isinstance(read, StringGet):
                        pipe.get(read.key)
                    else:
                        raise TypeError(f"Unsupported read: {read!r}")
                results: list[Any] = await pipe.execute()
        except RedisError as exc:
            raise VinStoreError(f"Pipelined read of {len(reads)} keys failed: {exc}", operation="read_many") from exc
        return results

    async def commit(self, transaction: ConditionalTransaction) -> bool:
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                watched = transaction.watched_keys
                if watched:
                    await pipe.watch(*watched)
                for guard in transaction.guards:
                    if not await self._guard_holds(pipe, guard):
                        _logger.debug("Guard failed before commit: %r", guard)
                        return False
                pipe.multi()
                for write in transaction.writes:
                    self._stage(pipe, write)
                await pipe.execute()
        except WatchError:
            _logger.debug("Watched keys changed during commit: %s", transaction.watched_keys)
            return False
        except RedisError as exc:
            raise VinStoreError(f"Conditional commit failed: {exc}", operation="commit") from exc
        return True

    async def delete_matching(self, patterns: Sequence[str]) -> int:
        deleted = 0
        try:
            for pattern in patterns:
                batch: list[str] = []
                async for key in self._redis.scan_iter(match=pattern, count=_SCAN_COUNT):
                    batch.append(key)
                    if len(batch) >= _SCAN_COUNT:
                        deleted += await self._redis.delete(*batch)
                        batch = []
                if batch:
                    deleted += await self._redis.delete(*batch)
        except RedisError as exc:
            raise VinStoreError(f"Clearing keys failed: {exc}", operation="delete_matching") from exc
        return deleted

    async def ping(self) -> None:
        try:
            await self._redis.ping()
        except RedisError as exc:
            raise VinStoreError(f"Ping failed: {exc}", operation="ping") from exc

    async def aclose(self) -> None:
        await self._redis.aclose()

    @staticmethod
    async def _guard_holds(pipe: Any, guard: Guard) -> bool:
        # After WATCH the pipeline runs commands immediately.
        if isinstance(guard, KeyAbsent):
            return int(await pipe.exists(guard.key)) == 0
        if isinstance(guard, HashFieldEquals):
            return await pipe.hget(guard.key, guard.field) == guard.value
        if isinstance(guard, StringEquals):
            return await pipe.get(guard.key) == guard.value
        raise TypeError(f"Unsupported guard: {guard!r}")

    @staticmethod
    def _stage(pipe: Any, write: Write) -> None:
        if isinstance(write, HashSet):
            pipe.hset(write.key, mapping=dict(write.mapping))
        elif isinstance(write, HashDelete):
            pipe.hdel(write.key, *write.fields)
        elif isinstance(write, StringSet):
            pipe.set(write.key, write.value)
        elif isinstance(write, Delete):
            pipe.delete(write.key)
        elif isinstance(write, SetAdd):
            pipe.sadd(write.key, write.member)
        else:
            raise TypeError(f"Unsupported write: {write!r}")
