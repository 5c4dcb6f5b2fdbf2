"""Tests for request logging, rate limiting and logging setup."""

import json
import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from fulfillment.api.middleware import REQUEST_ID_HEADER, LoggingMiddleware, RateLimitMiddleware
from fulfillment.utils.logger import build_formatter


def make_app(**limits) -> FastAPI:
    app = FastAPI()
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RateLimitMiddleware, **limits)

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


class TestRateLimit:
    def test_blocks_after_limit(self):
        client = TestClient(make_app(requests_per_period=2, period=60))

        assert client.get("/ping").status_code == 200
        assert client.get("/ping").status_code == 200
        response = client.get("/ping")

        assert response.status_code == 429
        assert response.json()["error"] == "RATE_LIMITED"
        assert int(response.headers["Retry-After"]) >= 1

    def test_exempt_paths_not_counted(self):
        client = TestClient(make_app(requests_per_period=1, period=60, exempt_paths=["/health"]))

        for _ in range(5):
            assert client.get("/health").status_code == 200
        assert client.get("/ping").status_code == 200
        assert client.get("/ping").status_code == 429


class TestLoggingMiddleware:
    def test_request_id_echoed(self):
        client = TestClient(make_app(requests_per_period=10))
        response = client.get("/ping", headers={REQUEST_ID_HEADER: "req-42"})

        assert response.headers[REQUEST_ID_HEADER] == "req-42"
        assert "X-Process-Time" in response.headers

    def test_request_id_generated(self):
        client = TestClient(make_app(requests_per_period=10))
        assert client.get("/ping").headers[REQUEST_ID_HEADER]


class TestLogFormat:
    def test_json_records_carry_extra_fields(self):
        record = logging.LogRecord(
            "fulfillment.services.order_service", logging.WARNING, __file__, 1, "Order %s stored", ("ORD-1",), None
        )
        record.order_id = "ORD-1"

        payload = json.loads(build_formatter("json").format(record))

        assert payload["message"] == "Order ORD-1 stored"
        assert payload["level"] == "WARNING"
        assert payload["order_id"] == "ORD-1"
        assert payload["service"] == "Order Fulfillment Service"

    def test_text_format(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", (), None)
        assert "hello" in build_formatter("text").format(record)
