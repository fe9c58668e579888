"""
Redis connection pool with idle and lifetime eviction.

Checkout is bounded by max_active and waits up to wait_timeout seconds for
a free connection. Released connections beyond max_idle are disconnected,
and connections that sat idle too long or outlived their max lifetime are
reconnected on checkout.
"""

import logging
import time

from redis.asyncio import BlockingConnectionPool
from redis.asyncio.connection import Connection

logger = logging.getLogger(__name__)


class EvictingConnectionPool(BlockingConnectionPool):
    """Bounded pool that enforces max idle connections and connection age."""

    def __init__(
        self,
        max_idle: int,
        max_active: int,
        idle_timeout: float,
        max_lifetime: float,
        wait_timeout: float = 5.0,
        **connection_kwargs,
    ):
        """
        Initialize the pool. No connection is opened until first checkout.

        Args:
            max_idle: Maximum connected connections kept while idle.
            max_active: Maximum connections checked out at once.
            idle_timeout: Seconds an idle connection may stay open. 0 disables.
            max_lifetime: Seconds a connection may live. 0 disables.
            wait_timeout: Seconds to wait for a free connection at max_active.
            **connection_kwargs: Passed to each redis connection.
        """
        super().__init__(
            max_connections=max_active,
            timeout=wait_timeout,
            connection_class=Connection,
            **connection_kwargs,
        )
        self.max_idle = max_idle
        self.idle_timeout = idle_timeout
        self.max_lifetime = max_lifetime
        self._connected_at: dict[int, float] = {}
        self._released_at: dict[int, float] = {}

    def _is_stale(self, connection: Connection, now: float) -> bool:
        connected_at = self._connected_at.get(id(connection))
        if connected_at is None:
            return False
        if self.max_lifetime and now - connected_at > self.max_lifetime:
            return True
        released_at = self._released_at.get(id(connection))
        if self.idle_timeout and released_at is not None:
            return now - released_at > self.idle_timeout
        return False

    def _forget(self, connection: Connection) -> None:
        self._connected_at.pop(id(connection), None)
        self._released_at.pop(id(connection), None)

    async def get_connection(self, *args, **kwargs):
        connection = await super().get_connection(*args, **kwargs)
        now = time.monotonic()
        if self._is_stale(connection, now):
            logger.debug("Recycling stale redis connection")
            try:
                await connection.disconnect()
                await connection.connect()
            except BaseException:
                self._forget(connection)
                await self.release(connection)
                raise
            self._forget(connection)
        self._connected_at.setdefault(id(connection), now)
        self._released_at.pop(id(connection), None)
        return connection

    async def release(self, connection: Connection) -> None:
        self._released_at[id(connection)] = time.monotonic()
        await super().release(connection)
        await self._trim_idle()

    async def _trim_idle(self) -> None:
        # Available connections are handed out LIFO, so the oldest idle
        # ones sit at the front of the list.
        idle = [c for c in self._available_connections if c.is_connected]
        excess = idle[: max(0, len(idle) - self.max_idle)]
        for connection in excess:
            if connection not in self._available_connections:
                continue
            self._available_connections.remove(connection)
            try:
                await connection.disconnect()
            finally:
                self._forget(connection)
                self._available_connections.insert(0, connection)

    async def disconnect(self, inuse_connections: bool = True) -> None:
        await super().disconnect(inuse_connections=inuse_connections)
        self._connected_at.clear()
        self._released_at.clear()
