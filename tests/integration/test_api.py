"""
Integration tests for the API endpoints.
"""

import importlib
import warnings
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import AsyncClient

import delayer.api.main
import delayer.api.routes.topics
from delayer.errors import InvalidArgument, StoreError
from delayer.promoter.main import Promoter
from delayer.store.memory import MemoryStore


class TestJobAPI:
    """Integration tests for push and remove endpoints."""

    async def test_push_job(self, http_client: AsyncClient, store: MemoryStore):
        """Test successful job push."""
        response = await http_client.post(
            "/v1/jobs",
            json={"id": "j1", "topic": "email", "body": "hi", "delay": 5},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == "j1"
        assert data["accepted"] is True
        assert await store.index_size() == 1

    async def test_push_generates_id(self, http_client: AsyncClient):
        response = await http_client.post(
            "/v1/jobs",
            json={"topic": "email", "body": "hi"},
        )

        assert response.status_code == 201
        assert len(response.json()["id"]) == 32

    async def test_push_pending_id(self, http_client: AsyncClient):
        """Test that re-pushing a pending id is reported as not accepted."""
        job = {"id": "j1", "topic": "email", "body": "hi", "delay": 30}
        await http_client.post("/v1/jobs", json=job)

        response = await http_client.post("/v1/jobs", json=job)

        assert response.status_code == 201
        assert response.json()["accepted"] is False

    @pytest.mark.parametrize(
        "body",
        [
            {"topic": "", "body": "hi"},
            {"topic": "email", "body": ""},
            {"id": "", "topic": "email", "body": "hi"},
            {"topic": "email", "body": "hi", "delay": -1},
            {"topic": "email", "body": "hi", "ready_max_lifetime": -5},
        ],
    )
    async def test_push_validation(self, http_client: AsyncClient, body: dict):
        """Test request validation."""
        response = await http_client.post("/v1/jobs", json=body)

        assert response.status_code == 422

    async def test_remove_job(self, http_client: AsyncClient, store: MemoryStore):
        await http_client.post(
            "/v1/jobs",
            json={"id": "j1", "topic": "email", "body": "hi", "delay": 30},
        )

        response = await http_client.delete("/v1/jobs/j1")

        assert response.status_code == 200
        assert response.json() == {"id": "j1", "removed": True}
        assert await store.index_size() == 0

    async def test_remove_unknown_job(self, http_client: AsyncClient):
        response = await http_client.delete("/v1/jobs/missing")

        assert response.status_code == 200
        assert response.json()["removed"] is False


class TestTopicAPI:
    """Integration tests for consumer endpoints."""

    @pytest.fixture
    def api_promoter(self, store: MemoryStore, metrics) -> Promoter:
        return Promoter(store, batch_size=10, metrics=metrics)

    @pytest_asyncio.fixture
    async def ready_job(self, http_client: AsyncClient, api_promoter: Promoter) -> str:
        """Push a job and promote it."""
        await http_client.post(
            "/v1/jobs",
            json={"id": "j1", "topic": "email", "body": "hi", "delay": 0},
        )
        await api_promoter.run_once()
        return "j1"

    async def test_pop(self, http_client: AsyncClient, ready_job: str):
        response = await http_client.post("/v1/topics/email/pop")

        assert response.status_code == 200
        assert response.json() == {"id": ready_job, "topic": "email", "body": "hi"}

    async def test_pop_empty(self, http_client: AsyncClient):
        """Test that an empty queue maps to 404."""
        response = await http_client.post("/v1/topics/email/pop")

        assert response.status_code == 404
        assert response.json()["error"] == "NotAvailable"

    async def test_pop_expired(
        self,
        http_client: AsyncClient,
        api_promoter: Promoter,
        clock,
    ):
        """Test that a lapsed job record maps to 410."""
        await http_client.post(
            "/v1/jobs",
            json={
                "id": "j1",
                "topic": "email",
                "body": "hi",
                "delay": 1,
                "ready_max_lifetime": 5,
            },
        )
        clock.advance(1)
        await api_promoter.run_once()
        clock.advance(5)

        response = await http_client.post("/v1/topics/email/pop")

        assert response.status_code == 410
        assert response.json()["error"] == "ExpiredOrIncomplete"

    async def test_bpop(self, http_client: AsyncClient, ready_job: str):
        response = await http_client.post("/v1/topics/email/bpop", params={"timeout": 1})

        assert response.status_code == 200
        assert response.json()["id"] == ready_job

    async def test_bpop_timeout(self, http_client: AsyncClient):
        """Test that a blocking pop with nothing ready maps to 408."""
        response = await http_client.post("/v1/topics/email/bpop", params={"timeout": 1})

        assert response.status_code == 408
        assert response.json()["error"] == "PopTimeout"

    @pytest.mark.parametrize("timeout", [0, 10_000])
    async def test_bpop_timeout_bounds(self, http_client: AsyncClient, timeout: int):
        """Test that unbounded or excessive waits are rejected."""
        response = await http_client.post(
            "/v1/topics/email/bpop", params={"timeout": timeout}
        )

        assert response.status_code == 422

    async def test_store_failure(self, http_client: AsyncClient, store: MemoryStore):
        """Test that store faults map to 503."""
        store.pop_ready = AsyncMock(side_effect=StoreError("connection refused"))

        response = await http_client.post("/v1/topics/email/pop")

        assert response.status_code == 503
        assert response.json()["error"] == "StoreError"


class TestHealthAPI:
    """Integration tests for health, stats and metrics endpoints."""

    async def test_health(self, http_client: AsyncClient):
        response = await http_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["store"] == "healthy"

    async def test_health_degraded(self, http_client: AsyncClient, store: MemoryStore):
        """Test health reporting when the store is unreachable."""
        store.ping = AsyncMock(side_effect=StoreError("down"))

        response = await http_client.get("/health")

        assert response.json()["status"] == "degraded"

    async def test_ready_and_live(self, http_client: AsyncClient):
        assert (await http_client.get("/ready")).json() == {"ready": True}
        assert (await http_client.get("/live")).json() == {"alive": True}

    async def test_stats(self, http_client: AsyncClient, store: MemoryStore):
        await http_client.post(
            "/v1/jobs", json={"id": "a", "topic": "email", "body": "x", "delay": 30}
        )
        await http_client.post(
            "/v1/jobs", json={"id": "b", "topic": "sms", "body": "x", "delay": 0}
        )
        await store.promote("b")

        response = await http_client.get(
            "/v1/stats", params=[("topic", "email"), ("topic", "sms")]
        )

        assert response.status_code == 200
        assert response.json() == {"scheduled": 1, "ready": {"email": 0, "sms": 1}}

    async def test_metrics(self, http_client: AsyncClient):
        await http_client.post("/v1/jobs", json={"topic": "email", "body": "hi"})

        response = await http_client.get("/metrics")

        assert response.status_code == 200
        assert "delayer_jobs_pushed_total" in response.text
        assert "delayer_api_requests_total" in response.text


class TestErrorMapping:
    """Tests for queue error to status code mapping."""

    def test_invalid_argument_maps_to_422(self):
        assert delayer.api.main.ERROR_STATUS[InvalidArgument] == 422

    @pytest.mark.parametrize("module", [delayer.api.main, delayer.api.routes.topics])
    def test_no_deprecated_status_constants(self, module):
        """Test that the API modules import without deprecation warnings."""
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            importlib.reload(module)

        assert not [
            w
            for w in caught
            if issubclass(w.category, DeprecationWarning) and w.filename == module.__file__
        ]
