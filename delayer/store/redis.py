"""
Redis-backed store.

Key layout:
- delayer:job_pool              sorted set, member = job id, score = ready-at
- delayer:job_bucket:<id>       hash with topic and body, expires by TTL
- delayer:ready_queue:<topic>   list, LPUSH by the promoter, RPOP by consumers
"""

import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from redis.asyncio import Redis
from redis.exceptions import RedisError

from delayer.config import Settings, get_settings
from delayer.constants import (
    FIELD_TOPIC,
    KEY_JOB_POOL,
    PREFIX_JOB_BUCKET,
    PREFIX_READY_QUEUE,
    PromotionOutcome,
)
from delayer.errors import StoreError
from delayer.store.base import Store
from delayer.store.pool import EvictingConnectionPool
from delayer.types.message import Message
from delayer.types.store import CommandResult, TxResult

logger = logging.getLogger(__name__)

# KEYS[1] = scheduling index, KEYS[2] = job record
# ARGV[1] = job id, ARGV[2] = ready queue prefix, ARGV[3] = topic field
# Returns 1 promoted, 0 already gone from the index, 2 record expired.
PROMOTE_SCRIPT = """
if redis.call('ZREM', KEYS[1], ARGV[1]) == 0 then
    return 0
end
local topic = redis.call('HGET', KEYS[2], ARGV[3])
if not topic or topic == '' then
    return 2
end
redis.call('LPUSH', ARGV[2] .. topic, ARGV[1])
return 1
"""

# KEYS[1] = scheduling index, KEYS[2] = job record, ARGV[1] = job id
# The record is only deleted when the index entry was, so a job that has
# already been promoted keeps its payload.
CANCEL_SCRIPT = """
local removed = redis.call('ZREM', KEYS[1], ARGV[1])
if removed == 0 then
    return {0, 0}
end
return {removed, redis.call('DEL', KEYS[2])}
"""

_PROMOTE_RESULTS = {
    0: PromotionOutcome.LOST_RACE,
    1: PromotionOutcome.PROMOTED,
    2: PromotionOutcome.EXPIRED,
}


def job_bucket_key(job_id: str) -> str:
    return PREFIX_JOB_BUCKET + job_id


def ready_queue_key(topic: str) -> str:
    return PREFIX_READY_QUEUE + topic


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """Re-raise redis failures as StoreError."""
    try:
        yield
    except RedisError as e:
        logger.warning(
            f"Redis command failed during {operation}: {e}",
            extra={"operation": operation},
        )
        raise StoreError(f"{operation} failed: {e}") from e


class RedisStore(Store):
    """
    Store implementation on a single Redis database.

    Schedule runs as a MULTI/EXEC transaction. Cancel and promotion run as
    Lua scripts so that exactly one of them wins a given job.
    """

    def __init__(
        self,
        host: str,
        port: int,
        database: int,
        password: str | None,
        max_idle: int,
        max_active: int,
        idle_timeout: float,
        conn_max_lifetime: float,
        pool_wait_timeout: float = 5.0,
        clock: Callable[[], float] = time.time,
        client: Redis | None = None,
    ):
        """
        Build the connection factory. Connections are opened on first use.

        Args:
            host: Redis host.
            port: Redis port.
            database: Logical database index.
            password: Optional password.
            max_idle: Maximum idle connections kept open.
            max_active: Maximum connections in use at once.
            idle_timeout: Seconds before an idle connection is recycled.
            conn_max_lifetime: Seconds before any connection is recycled.
            pool_wait_timeout: Seconds to wait for a connection at max_active.
            clock: Source of unix time for ready-at scores.
            client: Pre-built redis client, replacing the pool.
        """
        self._clock = clock
        self._pool: EvictingConnectionPool | None = None
        if client is None:
            self._pool = EvictingConnectionPool(
                max_idle=max_idle,
                max_active=max_active,
                idle_timeout=idle_timeout,
                max_lifetime=conn_max_lifetime,
                wait_timeout=pool_wait_timeout,
                host=host,
                port=port,
                db=database,
                password=password or None,
                decode_responses=True,
            )
            client = Redis(connection_pool=self._pool)
        self._redis = client
        self._promote_script = self._redis.register_script(PROMOTE_SCRIPT)
        self._cancel_script = self._redis.register_script(CANCEL_SCRIPT)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "RedisStore":
        """Create a store from application settings."""
        settings = settings or get_settings()
        return cls(
            host=settings.redis_host,
            port=settings.redis_port,
            database=settings.redis_database,
            password=settings.redis_password,
            max_idle=settings.redis_max_idle,
            max_active=settings.redis_max_active,
            idle_timeout=settings.redis_idle_timeout_seconds,
            conn_max_lifetime=settings.redis_conn_max_lifetime_seconds,
            pool_wait_timeout=settings.redis_pool_wait_timeout_seconds,
        )

    def time(self) -> float:
        return self._clock()

    async def schedule(self, message: Message, ready_at: float, ttl: int) -> TxResult:
        key = job_bucket_key(message.id)
        with translate_errors("schedule"):
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.hset(key, mapping=message.to_record())
                pipe.expire(key, ttl)
                pipe.zadd(KEY_JOB_POOL, {message.id: ready_at})
                hset, expire, zadd = await pipe.execute()

        # HSET counts new fields only, so overwriting a record reports 0.
        return TxResult(
            commands=(
                CommandResult("HSET", isinstance(hset, int), hset),
                CommandResult("EXPIRE", bool(expire), expire),
                CommandResult("ZADD", zadd == 1, zadd),
            )
        )

    async def cancel(self, job_id: str) -> TxResult:
        with translate_errors("cancel"):
            zrem, deleted = await self._cancel_script(
                keys=[KEY_JOB_POOL, job_bucket_key(job_id)],
                args=[job_id],
            )

        return TxResult(
            commands=(
                CommandResult("ZREM", zrem > 0, zrem),
                CommandResult("DEL", deleted > 0, deleted),
            )
        )

    async def pop_ready(self, topic: str) -> str | None:
        with translate_errors("pop"):
            return await self._redis.rpop(ready_queue_key(topic))

    async def bpop_ready(self, topic: str, timeout: int) -> str | None:
        with translate_errors("bpop"):
            result = await self._redis.brpop([ready_queue_key(topic)], timeout=timeout)
        if result is None:
            return None
        _, job_id = result
        return job_id

    async def read_record(self, job_id: str) -> dict[str, str]:
        with translate_errors("read_record"):
            return await self._redis.hgetall(job_bucket_key(job_id))

    async def delete_record(self, job_id: str) -> bool:
        with translate_errors("delete_record"):
            return await self._redis.delete(job_bucket_key(job_id)) > 0

    async def due_jobs(self, now: float, limit: int) -> list[str]:
        with translate_errors("due_jobs"):
            return await self._redis.zrangebyscore(
                KEY_JOB_POOL, "-inf", now, start=0, num=limit
            )

    async def promote(self, job_id: str) -> PromotionOutcome:
        with translate_errors("promote"):
            result = await self._promote_script(
                keys=[KEY_JOB_POOL, job_bucket_key(job_id)],
                args=[job_id, PREFIX_READY_QUEUE, FIELD_TOPIC],
            )
        return _PROMOTE_RESULTS[int(result)]

    async def index_size(self) -> int:
        with translate_errors("index_size"):
            return await self._redis.zcard(KEY_JOB_POOL)

    async def queue_depth(self, topic: str) -> int:
        with translate_errors("queue_depth"):
            return await self._redis.llen(ready_queue_key(topic))

    async def ping(self) -> bool:
        with translate_errors("ping"):
            return bool(await self._redis.ping())

    async def close(self) -> None:
        await self._redis.aclose()
        if self._pool is not None:
            await self._pool.disconnect()
