"""Tests for server-side repricing and coupon application."""

from decimal import Decimal

import pytest
from conftest import run

from fulfillment.errors import InvalidOrderInput, ProductNotFound
from fulfillment.models.request import CartItem, ClaimedFinancials
from fulfillment.services.pricing_service import build_financials, pricing_service


def cart(*lines):
    return [CartItem(productId=pid, quantity=qty) for pid, qty in lines]


class TestReprice:
    def test_uses_catalog_prices(self, catalog):
        items = [CartItem(**{"productId": "p1", "quantity": 2, "price": 1, "unitPrice": 1})]
        result = run(pricing_service.reprice(items))

        assert result.subtotal == Decimal("10000.00")
        assert result.items[0].unitPrice == 5000.0
        assert result.items[0].name == "Clinical Anatomy Atlas"
        assert result.discount == 0
        assert result.coupon_code is None

    def test_multiple_lines(self, catalog):
        result = run(pricing_service.reprice(cart(("p1", 1), ("p2", 3))))
        assert result.subtotal == Decimal("12500.00")

    def test_image_defaults_to_catalog(self, catalog):
        result = run(pricing_service.reprice(cart(("p2", 1))))
        assert result.items[0].imageRef == "https://cdn.example.com/steth.jpg"

    def test_unknown_product(self, catalog):
        with pytest.raises(ProductNotFound) as exc_info:
            run(pricing_service.reprice(cart(("p1", 1), ("ghost", 1))))
        assert exc_info.value.product_id == "ghost"

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity(self, catalog, quantity):
        with pytest.raises(InvalidOrderInput):
            run(pricing_service.reprice(cart(("p1", quantity))))

    def test_empty_cart(self, catalog):
        with pytest.raises(InvalidOrderInput):
            run(pricing_service.reprice([]))


class TestCoupons:
    def test_percentage_coupon(self, catalog):
        result = run(pricing_service.reprice(cart(("p1", 2)), "SAVE10"))
        assert result.discount == Decimal("1000.00")
        assert result.coupon_code == "SAVE10"

    def test_code_lookup_ignores_case_and_spaces(self, catalog):
        result = run(pricing_service.reprice(cart(("p1", 2)), "  save10 "))
        assert result.coupon_code == "SAVE10"

    def test_fixed_coupon(self, catalog):
        result = run(pricing_service.reprice(cart(("p1", 1)), "FLAT500"))
        assert result.discount == Decimal("500.00")

    @pytest.mark.parametrize("code", ["NOPE", "EXPIRED10", "OFF10", "USEDUP", "BIGSPEND"])
    def test_unusable_coupon_gives_no_discount(self, catalog, code):
        result = run(pricing_service.reprice(cart(("p1", 2)), code))
        assert result.discount == 0
        assert result.coupon_code is None
        assert result.subtotal == Decimal("10000.00")

    def test_below_minimum_spend(self, catalog):
        result = run(pricing_service.reprice(cart(("p2", 1)), "SAVE10"))
        assert result.discount == 0


class TestBuildFinancials:
    def test_total(self):
        financials = build_financials(Decimal("10000"), Decimal("1000"), Decimal("0"))
        assert financials.total == 11000.0
        assert financials.couponCode is None

    def test_percentage_discount_excludes_shipping(self, catalog):
        repriced = run(pricing_service.reprice(cart(("p1", 2)), "SAVE10"))
        financials = build_financials(
            repriced.subtotal, Decimal("1000"), repriced.discount, repriced.coupon_code
        )
        assert financials.discount == 1000.0
        assert financials.total == 10000.0
        assert financials.couponCode == "SAVE10"

    def test_discount_capped_at_gross(self):
        financials = build_financials(Decimal("5000"), Decimal("1000"), Decimal("50000"), "HUGE")
        assert financials.discount == 6000.0
        assert financials.total == 0.0

    def test_zero_discount_drops_code(self):
        financials = build_financials(Decimal("5000"), Decimal("1000"), Decimal("0"), "SAVE10")
        assert financials.couponCode is None


class TestAuditClaimed:
    def test_no_claim(self):
        computed = build_financials(Decimal("10000"), Decimal("1000"), Decimal("0"))
        assert pricing_service.audit_claimed(None, computed, "****1234")

    def test_matching_claim(self):
        computed = build_financials(Decimal("10000"), Decimal("1000"), Decimal("0"))
        claimed = ClaimedFinancials(subtotal=10000, total=11000.004)
        assert pricing_service.audit_claimed(claimed, computed, "****1234")

    def test_mismatch_is_logged(self, caplog):
        computed = build_financials(Decimal("10000"), Decimal("1000"), Decimal("0"))
        claimed = ClaimedFinancials(subtotal=10, total=11)
        with caplog.at_level("WARNING"):
            assert not pricing_service.audit_claimed(claimed, computed, "****1234")
        assert "differ from server totals" in caplog.text
