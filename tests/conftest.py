"""Pytest fixtures for fulfillment tests."""

import asyncio
import os
from datetime import UTC, datetime, timedelta
from typing import Any, Optional

# Settings are cached on first import, so the environment must be ready first
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["PAYSTACK_SECRET_KEY"] = "sk_test_fixture"
os.environ["ADMIN_SECRET"] = "test-admin"
os.environ["LOG_FORMAT"] = "text"
os.environ["SMTP_FROM_EMAIL"] = ""
os.environ["ENVIRONMENT"] = "development"
os.environ["PAYMENT_VERIFICATION_ENABLED"] = "true"

import httpx
import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from fulfillment.database.mongodb import mongodb
from fulfillment.models.coupon import CouponInDB, CouponType
from fulfillment.models.order import PaymentProof
from fulfillment.models.product import DeliveryZone, Product
from fulfillment.services.order_service import order_service
from fulfillment.services.payment_service import PaystackVerifier

ADMIN_HEADERS = {"X-Admin-Secret": "test-admin"}


def run(coro):
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


class FakePaystack:
    """In-memory stand-in for Paystack's transaction lookup endpoint."""

    def __init__(self) -> None:
        self.transactions: dict[str, dict[str, Any]] = {}
        self.calls: list[str] = []
        self.requests: list[httpx.Request] = []

    def pay(self, reference: str, amount_kobo: int, status: str = "success") -> None:
        self.transactions[reference] = {"status": status, "amount": amount_kobo}

    def handler(self, request: httpx.Request) -> httpx.Response:
        reference = request.url.path.rsplit("/", 1)[-1]
        self.calls.append(reference)
        self.requests.append(request)
        tx = self.transactions.get(reference)
        if tx is None:
            return httpx.Response(
                400, json={"status": False, "message": "Transaction reference not found"}
            )
        return httpx.Response(
            200,
            json={
                "status": True,
                "message": "Verification successful",
                "data": {"reference": reference, "currency": "NGN", **tx},
            },
        )

    def verifier(self) -> PaystackVerifier:
        return PaystackVerifier(transport=httpx.MockTransport(self.handler))


class RecordingDispatcher:
    """Notification dispatcher that only records what it was asked to send."""

    def __init__(self) -> None:
        self.sent: list[tuple] = []

    def send(self, kind, order) -> None:
        self.sent.append((kind, order.orderId, order.status))

    def kinds(self, order_id: Optional[str] = None) -> list:
        return [kind for kind, oid, _ in self.sent if order_id is None or oid == order_id]


class InstantVerifier:
    """Accepts every reference for exactly the expected amount.

    Yields to the event loop first so concurrent orders interleave between
    repricing and persistence.
    """

    def __init__(self, delay: float = 0.01) -> None:
        self.delay = delay
        self.calls: list[str] = []

    async def verify(self, reference: str, expected_minor_units: int) -> PaymentProof:
        self.calls.append(reference)
        await asyncio.sleep(self.delay)
        return PaymentProof(reference=reference, verifiedAmount=expected_minor_units)


@pytest.fixture
def db(monkeypatch):
    """Point the global MongoDB manager at a fresh in-memory database."""
    client = AsyncMongoMockClient()
    monkeypatch.setattr(mongodb, "client", client)
    monkeypatch.setattr(mongodb, "db", client["fulfillment_test"])
    run(mongodb.create_indexes())
    yield mongodb


@pytest.fixture
def catalog(db):
    """Seed products, a delivery zone and a set of coupons."""
    now = datetime.now(UTC)

    async def seed():
        await db.upsert_product(Product(productId="p1", name="Clinical Anatomy Atlas", price=5000.0))
        await db.upsert_product(
            Product(
                productId="p2",
                name="Dual-Head Stethoscope",
                price=2500.0,
                images=["https://cdn.example.com/steth.jpg"],
            )
        )
        await db.create_zone(DeliveryZone(name="Lagos", price=1000.0))
        await db.create_zone(DeliveryZone(name="Kano", price=3000.0, isActive=False))

        coupons = [
            CouponInDB(code="SAVE10", type=CouponType.PERCENTAGE, value=10, minOrderAmount=5000),
            CouponInDB(code="FLAT500", type=CouponType.FIXED, value=500),
            CouponInDB(code="HUGE", type=CouponType.FIXED, value=50000),
            CouponInDB(
                code="EXPIRED10",
                type=CouponType.PERCENTAGE,
                value=10,
                expiresAt=now - timedelta(days=1),
            ),
            CouponInDB(code="OFF10", type=CouponType.PERCENTAGE, value=10, isActive=False),
            CouponInDB(
                code="USEDUP", type=CouponType.PERCENTAGE, value=10, maxUses=1, usageCount=1
            ),
            CouponInDB(code="BIGSPEND", type=CouponType.FIXED, value=1000, minOrderAmount=20000),
        ]
        for coupon in coupons:
            await db.create_coupon(coupon)

    run(seed())
    return db


@pytest.fixture
def paystack(monkeypatch):
    """Route payment verification to an in-memory Paystack."""
    fake = FakePaystack()
    monkeypatch.setattr(order_service, "verifier", fake.verifier())
    return fake


@pytest.fixture
def dispatcher(monkeypatch):
    """Capture notifications instead of emailing."""
    recorder = RecordingDispatcher()
    monkeypatch.setattr(order_service, "dispatcher", recorder)
    return recorder


@pytest.fixture
def client(catalog, paystack, dispatcher):
    """Test client wired to the in-memory database and payment provider."""
    from fulfillment.main import app

    return TestClient(app)


def order_payload(
    reference: str,
    items: Optional[list[dict]] = None,
    coupon: Optional[str] = None,
    region: str = "Lagos",
    claimed: Optional[dict] = None,
) -> dict:
    """Build a POST /orders body."""
    payload = {
        "customer": {
            "name": "Ada Obi",
            "email": "ada@example.com",
            "phone": "+2348012345678",
            "address": "12 Marina Road",
            "region": region,
        },
        "items": items if items is not None else [{"productId": "p1", "quantity": 2}],
        "paymentReference": reference,
    }
    if coupon is not None:
        payload["couponCode"] = coupon
    if claimed is not None:
        payload["claimedFinancials"] = claimed
    return payload
