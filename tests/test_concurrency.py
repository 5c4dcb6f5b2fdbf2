"""Tests for order creation and status updates under concurrent requests."""

import asyncio

import pytest
from conftest import InstantVerifier, order_payload, run

from fulfillment.errors import DuplicateReference, InvalidStatusTransition
from fulfillment.models.coupon import CouponInDB, CouponType
from fulfillment.models.order import OrderInDB, OrderStatus
from fulfillment.models.request import CreateOrderRequest
from fulfillment.services.order_service import order_service


@pytest.fixture
def verifier(catalog, dispatcher, monkeypatch):
    fake = InstantVerifier()
    monkeypatch.setattr(order_service, "verifier", fake)
    return fake


def request_for(reference, **kwargs) -> CreateOrderRequest:
    return CreateOrderRequest(**order_payload(reference, **kwargs))


class TestConcurrentCreation:
    def test_same_reference_creates_one_order(self, verifier, db):
        async def race():
            return await asyncio.gather(
                order_service.create_order(request_for("PAY-RACE")),
                order_service.create_order(
                    request_for("PAY-RACE", items=[{"productId": "p2", "quantity": 1}])
                ),
                return_exceptions=True,
            )

        results = run(race())

        created = [r for r in results if isinstance(r, OrderInDB)]
        rejected = [r for r in results if isinstance(r, DuplicateReference)]
        assert len(created) == 1
        assert len(rejected) == 1
        assert run(db.orders.count_documents({"payment.reference": "PAY-RACE"})) == 1
        assert verifier.calls == ["PAY-RACE", "PAY-RACE"]

    def test_many_duplicates(self, verifier, db):
        async def race():
            return await asyncio.gather(
                *(order_service.create_order(request_for("PAY-MANY")) for _ in range(8)),
                return_exceptions=True,
            )

        results = run(race())

        assert sum(isinstance(r, OrderInDB) for r in results) == 1
        assert sum(isinstance(r, DuplicateReference) for r in results) == 7
        assert run(db.orders.count_documents({})) == 1


class TestCouponUsageBound:
    def add_coupon(self, db, code, max_uses):
        run(
            db.create_coupon(
                CouponInDB(code=code, type=CouponType.FIXED, value=500, maxUses=max_uses)
            )
        )

    def test_last_use_raced(self, verifier, db):
        self.add_coupon(db, "LAST1", 1)

        async def race():
            return await asyncio.gather(
                order_service.create_order(request_for("PAY-C1", coupon="LAST1")),
                order_service.create_order(request_for("PAY-C2", coupon="LAST1")),
            )

        first, second = run(race())

        # Both orders were paid at the discounted price and are kept
        assert first.financials.discount == 500.0
        assert second.financials.discount == 500.0
        assert run(db.orders.count_documents({})) == 2
        assert run(db.get_coupon("LAST1")).usageCount == 1

    def test_usage_never_exceeds_cap(self, verifier, db):
        self.add_coupon(db, "FEW3", 3)

        async def race():
            return await asyncio.gather(
                *(
                    order_service.create_order(request_for(f"PAY-F{i}", coupon="FEW3"))
                    for i in range(10)
                )
            )

        orders = run(race())

        assert len(orders) == 10
        assert run(db.get_coupon("FEW3")).usageCount == 3

    def test_coupon_exhausted_before_order(self, verifier, db):
        self.add_coupon(db, "ONCE", 1)
        run(order_service.create_order(request_for("PAY-O1", coupon="ONCE")))
        later = run(order_service.create_order(request_for("PAY-O2", coupon="ONCE")))

        assert later.financials.discount == 0.0
        assert later.financials.couponCode is None
        assert run(db.get_coupon("ONCE")).usageCount == 1


class TestConcurrentStatusUpdates:
    def test_racing_updates_leave_order_consistent(self, verifier, db):
        order = run(order_service.create_order(request_for("PAY-S1")))
        targets = [
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.CANCELLED,
            OrderStatus.DELIVERED,
        ]

        async def race():
            return await asyncio.gather(
                *(order_service.update_status(order.orderId, t) for t in targets),
                return_exceptions=True,
            )

        results = run(race())
        final = run(order_service.get_order(order.orderId))

        assert all(isinstance(r, (OrderInDB, InvalidStatusTransition)) for r in results)
        assert final.status in targets
        assert final.items == order.items
        assert final.financials == order.financials
        assert final.payment == order.payment
        assert final.customer == order.customer

    def test_cancel_and_ship_race(self, verifier, db):
        order = run(order_service.create_order(request_for("PAY-S2")))
        run(order_service.update_status(order.orderId, OrderStatus.PROCESSING))

        async def race():
            return await asyncio.gather(
                order_service.update_status(order.orderId, OrderStatus.SHIPPED),
                order_service.update_status(order.orderId, OrderStatus.CANCELLED),
                return_exceptions=True,
            )

        run(race())
        final = run(order_service.get_order(order.orderId))
        assert final.status in (OrderStatus.SHIPPED, OrderStatus.CANCELLED)
