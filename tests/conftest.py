"""
Pytest configuration and shared fixtures.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from prometheus_client import CollectorRegistry

from delayer.api.main import create_app
from delayer.client import QueueClient
from delayer.config import Settings
from delayer.observability.metrics import MetricsCollector
from delayer.promoter.main import Promoter
from delayer.store.memory import MemoryStore


class FakeClock:
    """Controllable unix clock for ready-at scores and record expiry."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock."""
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> MemoryStore:
    """Create an in-memory store driven by the fake clock."""
    return MemoryStore(clock=clock)


@pytest.fixture
def enqueue_ready(store: MemoryStore) -> Callable[[str, str], Awaitable[None]]:
    """
    Append a job id straight onto a ready queue, skipping the index.

    Stands in for a ready-queue entry whose record never existed.
    """

    async def enqueue(topic: str, job_id: str) -> None:
        async with store._condition:
            store._queues[topic].append(job_id)
            store._condition.notify_all()

    return enqueue


@pytest.fixture
def registry() -> CollectorRegistry:
    """Create an isolated metrics registry."""
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> MetricsCollector:
    """Create a metrics collector bound to the isolated registry."""
    return MetricsCollector(registry=registry)


@pytest.fixture
def client(store: MemoryStore, metrics: MetricsCollector) -> QueueClient:
    """Create a queue client over the in-memory store."""
    return QueueClient(store, metrics=metrics)


@pytest.fixture
def promoter(store: MemoryStore, metrics: MetricsCollector) -> Promoter:
    """Create a promoter over the in-memory store."""
    return Promoter(store, interval_seconds=0.05, batch_size=10, metrics=metrics)


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        store_backend="memory",
        log_level="DEBUG",
        log_format="console",
        promoter_interval_seconds=0.05,
        promoter_batch_size=10,
        api_max_blocking_timeout_seconds=5,
    )


@pytest.fixture
def app(store: MemoryStore) -> FastAPI:
    """Create a FastAPI app over the in-memory store."""
    return create_app(store=store)


@pytest_asyncio.fixture
async def http_client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create an async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
