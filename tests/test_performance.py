"""
Tests for request timing, metrics collection and search under load.
"""

import logging
import pytest
import time
from decimal import Decimal
from fastapi import FastAPI, HTTPException
from httpx import AsyncClient, ASGITransport

from estatehub.config import settings
from estatehub.middleware.performance import (
    PerformanceMonitoringMiddleware,
    RequestMetrics,
    UNMATCHED_ROUTE,
    process_metrics,
)
from estatehub.models.user import User
from tests.conftest import PropertyFactory

API = settings.api_v1_prefix


def build_app(metrics: RequestMetrics, slow_request_threshold: float = 1.0) -> FastAPI:
    app = FastAPI()
    app.add_middleware(
        PerformanceMonitoringMiddleware,
        slow_request_threshold=slow_request_threshold,
        metrics=metrics,
    )

    @app.get("/items/{item_id}")
    async def read_item(item_id: int):
        return {"item_id": item_id}

    @app.get("/broken")
    async def broken():
        raise HTTPException(status_code=404, detail="missing")

    return app


class TestRequestMetrics:
    """Test the in-memory metrics store."""

    def test_record_and_summary(self):
        metrics = RequestMetrics()
        metrics.record("GET /a", 200, 0.2, False, "r1")
        metrics.record("GET /a", 500, 0.4, False, "r2")

        summary = metrics.summary()

        assert summary["total_requests"] == 2
        assert summary["total_errors"] == 1
        assert summary["error_rate"] == 0.5
        endpoint = summary["endpoints"]["GET /a"]
        assert endpoint["average_time"] == 0.3
        assert endpoint["min_time"] == 0.2
        assert endpoint["max_time"] == 0.4

    def test_slow_requests_are_bounded(self):
        metrics = RequestMetrics(slow_request_limit=3)
        for i in range(5):
            metrics.record("GET /slow", 200, 2.0, True, f"r{i}")

        recent = metrics.recent_slow_requests(limit=10)

        assert [entry["request_id"] for entry in recent] == ["r2", "r3", "r4"]
        assert metrics.recent_slow_requests(limit=1)[0]["request_id"] == "r4"

    def test_empty_summary(self):
        summary = RequestMetrics().summary()
        assert summary["total_requests"] == 0
        assert summary["error_rate"] == 0.0
        assert summary["endpoints"] == {}

    def test_process_metrics(self):
        resources = process_metrics()
        assert resources["process"]["memory_rss"] > 0
        assert "memory_percent" in resources["system"]


class TestPerformanceMonitoringMiddleware:
    """Test request tagging and timing."""

    async def test_headers_and_route_template(self):
        metrics = RequestMetrics()
        app = build_app(metrics)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            await client.get("/items/1")
            response = await client.get("/items/2")

        assert response.status_code == 200
        assert len(response.headers["X-Request-ID"]) == 8
        assert "X-Processing-Time" in response.headers
        # Both ids share one entry
        assert metrics.summary()["endpoints"]["GET /items/{item_id}"]["total_requests"] == 2

    async def test_errors_counted(self):
        metrics = RequestMetrics()
        app = build_app(metrics)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/broken")

        assert response.status_code == 404
        assert metrics.summary()["total_errors"] == 1

    async def test_slow_requests_recorded(self):
        metrics = RequestMetrics()
        app = build_app(metrics, slow_request_threshold=0.0)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/items/7", headers={"X-Request-ID": "slow-1"})

        slow = metrics.recent_slow_requests()
        assert response.headers["X-Request-ID"] == "slow-1"
        assert slow[0]["request_id"] == "slow-1"
        assert slow[0]["endpoint"] == "GET /items/{item_id}"

    async def test_unmatched_paths_share_one_entry(self):
        metrics = RequestMetrics()
        app = build_app(metrics)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            for i in range(25):
                response = await client.get(f"/no-such-route/{i}")
                assert response.status_code == 404

        endpoints = metrics.summary()["endpoints"]
        assert list(endpoints) == [f"GET {UNMATCHED_ROUTE}"]
        assert endpoints[f"GET {UNMATCHED_ROUTE}"]["total_requests"] == 25

    async def test_every_request_is_logged(self, caplog):
        metrics = RequestMetrics()
        app = build_app(metrics)
        caplog.set_level(logging.INFO, logger="estatehub.middleware.performance")

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            await client.get("/items/3", headers={"X-Request-ID": "log-1"})

        messages = [record.getMessage() for record in caplog.records]
        assert any(m.startswith("[log-1] GET /items/3 200") for m in messages)


@pytest.mark.integration
class TestSearchPerformance:
    """Search over a larger data set."""

    async def test_search_and_pagination(self, async_client: AsyncClient, property_repository, test_landlord: User):
        for i in range(40):
            await PropertyFactory.create_property(
                property_repository,
                test_landlord.id,
                title=f"Listing {i}",
                price=Decimal(300 + i * 10),
                bedrooms=i % 4,
                city="Lagos" if i % 2 else "Abuja",
            )

        start = time.perf_counter()
        response = await async_client.get(
            f"{API}/properties",
            params={"city": "Lagos", "min_bedrooms": 1, "sort_by": "price", "sort_order": "asc", "page_size": 5}
        )
        elapsed = time.perf_counter() - start

        assert response.status_code == 200
        data = response.json()
        prices = [p["price"] for p in data["properties"]]
        assert prices == sorted(prices)
        assert len(prices) == 5
        assert data["total"] == 20
        assert data["total_pages"] == 4
        assert data["has_next"] is True
        assert elapsed < 2.0

    async def test_pages_do_not_overlap(self, async_client: AsyncClient, property_repository, test_landlord: User):
        for i in range(12):
            await PropertyFactory.create_property(property_repository, test_landlord.id, title=f"Page Listing {i}")

        seen = []
        for page in (1, 2, 3):
            response = await async_client.get(f"{API}/properties", params={"page": page, "page_size": 5})
            seen.extend(p["id"] for p in response.json()["properties"])

        assert len(seen) == 12
        assert len(set(seen)) == 12
