"""Coupon ledger: applicability rules, discounts and redemption."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from fulfillment.database.mongodb import mongodb
from fulfillment.errors import CouponNotApplicable, CouponNotFound
from fulfillment.models.coupon import (
    CouponCreate,
    CouponInDB,
    CouponType,
    CouponVerifyResponse,
    canonical_code,
)
from fulfillment.utils.helpers import utc_now
from fulfillment.utils.money import as_float, quantize, to_decimal

logger = logging.getLogger(__name__)

# Re-reads allowed when the cap is edited between lookup and redemption
_REDEEM_ATTEMPTS = 2


class CouponService:
    """Coupon service for discount evaluation and usage tracking."""

    @staticmethod
    def rejection_reason(
        coupon: CouponInDB, subtotal: Decimal, now: Optional[datetime] = None
    ) -> Optional[str]:
        """Return why a coupon cannot be used for this subtotal, or None if it can."""
        if not coupon.isActive:
            return "Coupon is not active"
        if coupon.is_expired(now or utc_now()):
            return "Coupon has expired"
        if coupon.is_exhausted():
            return "This coupon has reached its maximum usage limit"
        if subtotal < to_decimal(coupon.minOrderAmount):
            return f"This coupon requires a minimum spend of NGN {coupon.minOrderAmount:,.2f}"
        return None

    @staticmethod
    def compute_discount(coupon: CouponInDB, subtotal: Decimal) -> Decimal:
        """Discount for a subtotal. Percentages apply to the subtotal only."""
        if coupon.type == CouponType.PERCENTAGE:
            return quantize(subtotal * to_decimal(coupon.value) / 100)
        return quantize(coupon.value)

    async def find_applicable(self, code: str, subtotal: Decimal) -> Optional[CouponInDB]:
        """Look up a coupon for an order, or None if it does not apply.

        An unknown, inactive, expired, exhausted or under-minimum coupon is
        not an error here: the order goes ahead without a discount.
        """
        coupon = await mongodb.find_active_coupon(code)
        if coupon is None:
            logger.info("Coupon %s not found or inactive; no discount applied", canonical_code(code))
            return None

        reason = self.rejection_reason(coupon, subtotal)
        if reason:
            logger.info("Coupon %s not applied: %s", coupon.code, reason)
            return None
        return coupon

    async def verify_coupon(self, code: str, subtotal: float) -> CouponVerifyResponse:
        """Check a coupon for the checkout page without recording any usage."""
        coupon = await mongodb.find_active_coupon(code)
        if coupon is None:
            raise CouponNotFound(canonical_code(code))

        amount = to_decimal(subtotal)
        reason = self.rejection_reason(coupon, amount)
        if reason:
            raise CouponNotApplicable(reason)

        return CouponVerifyResponse(
            code=coupon.code,
            type=coupon.type,
            value=coupon.value,
            discount=as_float(min(self.compute_discount(coupon, amount), amount)),
            usageCount=coupon.usageCount,
            maxUses=coupon.maxUses,
        )

    @staticmethod
    async def redeem(code: str, order_id: str) -> bool:
        """Record one use of a coupon for a persisted order.

        Returns False when the coupon is exhausted or gone. The caller's order
        is already stored and is never affected by the outcome.
        """
        coupon = await mongodb.get_coupon(code)
        for _ in range(_REDEEM_ATTEMPTS):
            if coupon is None:
                logger.error(
                    "Coupon %s vanished before redemption for order %s",
                    canonical_code(code),
                    order_id,
                    extra={"order_id": order_id, "coupon_code": canonical_code(code)},
                )
                return False

            if await mongodb.increment_coupon_usage(coupon.code, coupon.maxUses):
                logger.info("Coupon %s redeemed for order %s", coupon.code, order_id)
                return True

            previous_cap = coupon.maxUses
            coupon = await mongodb.get_coupon(code)
            if coupon is not None and coupon.maxUses == previous_cap:
                break

        logger.error(
            "Coupon %s exhausted; order %s keeps its paid discount and needs reconciliation",
            canonical_code(code),
            order_id,
            extra={"order_id": order_id, "coupon_code": canonical_code(code)},
        )
        return False

    @staticmethod
    async def create_coupon(data: CouponCreate) -> CouponInDB:
        """Create a new coupon."""
        coupon = CouponInDB(**data.model_dump())
        created = await mongodb.create_coupon(coupon)
        logger.info("Created coupon %s (%s %s)", created.code, created.type.value, created.value)
        return created

    @staticmethod
    async def list_coupons() -> list[CouponInDB]:
        """List all coupons."""
        return await mongodb.list_coupons()

    @staticmethod
    async def toggle_coupon(code: str) -> CouponInDB:
        """Flip a coupon between active and inactive."""
        coupon = await mongodb.get_coupon(code)
        if coupon is None:
            raise CouponNotFound(canonical_code(code))
        updated = await mongodb.set_coupon_active(coupon.code, not coupon.isActive)
        if updated is None:
            raise CouponNotFound(coupon.code)
        logger.info("Coupon %s is now %s", updated.code, "active" if updated.isActive else "inactive")
        return updated

    @staticmethod
    async def delete_coupon(code: str) -> None:
        """Delete a coupon."""
        if not await mongodb.delete_coupon(code):
            raise CouponNotFound(canonical_code(code))
        logger.info("Deleted coupon %s", canonical_code(code))


# Global coupon service instance
coupon_service = CouponService()
