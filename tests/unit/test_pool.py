"""
Unit tests for the evicting redis connection pool.
"""

import pytest

from delayer.store.pool import EvictingConnectionPool


class FakeConnection:
    """Stand-in for a redis connection that tracks disconnects."""

    def __init__(self):
        self.is_connected = True
        self.disconnects = 0

    async def disconnect(self):
        self.is_connected = False
        self.disconnects += 1


@pytest.fixture
def pool() -> EvictingConnectionPool:
    return EvictingConnectionPool(
        max_idle=2,
        max_active=5,
        idle_timeout=30,
        max_lifetime=300,
        host="localhost",
        port=6379,
    )


class TestStaleness:
    """Tests for idle and lifetime staleness checks."""

    def test_untracked_connection_is_fresh(self, pool: EvictingConnectionPool):
        assert pool._is_stale(FakeConnection(), now=1000.0) is False

    def test_lifetime_exceeded(self, pool: EvictingConnectionPool):
        """Test that connections older than max_lifetime are stale."""
        connection = FakeConnection()
        pool._connected_at[id(connection)] = 0.0

        assert pool._is_stale(connection, now=300.0) is False
        assert pool._is_stale(connection, now=301.0) is True

    def test_idle_timeout_exceeded(self, pool: EvictingConnectionPool):
        """Test that connections idle longer than idle_timeout are stale."""
        connection = FakeConnection()
        pool._connected_at[id(connection)] = 100.0
        pool._released_at[id(connection)] = 110.0

        assert pool._is_stale(connection, now=140.0) is False
        assert pool._is_stale(connection, now=141.0) is True

    def test_zero_limits_disable_eviction(self):
        """Test that 0 disables both checks."""
        pool = EvictingConnectionPool(
            max_idle=2, max_active=5, idle_timeout=0, max_lifetime=0
        )
        connection = FakeConnection()
        pool._connected_at[id(connection)] = 0.0
        pool._released_at[id(connection)] = 0.0

        assert pool._is_stale(connection, now=1e9) is False


class TestTrimIdle:
    """Tests for the max idle limit."""

    async def test_trims_oldest_idle_connections(self, pool: EvictingConnectionPool):
        """Test that only max_idle connected connections stay open."""
        oldest, older, newer, newest = (FakeConnection() for _ in range(4))
        pool._available_connections = [oldest, older, newer, newest]

        await pool._trim_idle()

        assert oldest.disconnects == 1
        assert older.disconnects == 1
        assert newer.is_connected and newest.is_connected
        assert len(pool._available_connections) == 4

    async def test_trimmed_connections_stay_in_pool(self, pool: EvictingConnectionPool):
        """Test that trimmed connections remain reusable and are handed out last."""
        connections = [FakeConnection() for _ in range(3)]
        pool._available_connections = list(connections)

        await pool._trim_idle()

        assert pool._available_connections[0] is connections[0]
        assert pool._available_connections[-1] is connections[-1]

    async def test_within_limit_is_untouched(self, pool: EvictingConnectionPool):
        connections = [FakeConnection() for _ in range(2)]
        pool._available_connections = list(connections)

        await pool._trim_idle()

        assert all(c.disconnects == 0 for c in connections)

    async def test_disconnected_connections_do_not_count(self, pool: EvictingConnectionPool):
        """Test that already closed connections are not counted as idle."""
        closed = FakeConnection()
        closed.is_connected = False
        open_ones = [FakeConnection(), FakeConnection()]
        pool._available_connections = [closed, *open_ones]

        await pool._trim_idle()

        assert closed.disconnects == 0
        assert all(c.disconnects == 0 for c in open_ones)

    async def test_trim_forgets_timestamps(self, pool: EvictingConnectionPool):
        connections = [FakeConnection() for _ in range(3)]
        for connection in connections:
            pool._connected_at[id(connection)] = 1.0
        pool._available_connections = list(connections)

        await pool._trim_idle()

        assert id(connections[0]) not in pool._connected_at
        assert id(connections[2]) in pool._connected_at
