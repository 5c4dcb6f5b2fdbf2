"""Order repricing from trusted catalog and coupon data."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from fulfillment.errors import InvalidOrderInput
from fulfillment.models.order import Financials, OrderItem
from fulfillment.models.request import CartItem, ClaimedFinancials
from fulfillment.services.catalog_service import catalog_service
from fulfillment.services.coupon_service import coupon_service
from fulfillment.utils.money import as_float, quantize, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepricedCart:
    """Cart lines and amounts recomputed on the server."""

    items: list[OrderItem]
    subtotal: Decimal
    discount: Decimal
    coupon_code: Optional[str] = None


def build_financials(
    subtotal: Decimal, shipping_fee: Decimal, discount: Decimal, coupon_code: Optional[str] = None
) -> Financials:
    """Combine repriced amounts with shipping into the order's financials.

    The discount is capped at subtotal + shipping so the total never goes
    negative.
    """
    gross = quantize(subtotal + shipping_fee)
    discount = min(quantize(discount), gross)
    total = max(Decimal(0), gross - discount)
    return Financials(
        subtotal=as_float(subtotal),
        shippingFee=as_float(shipping_fee),
        discount=as_float(discount),
        total=as_float(total),
        couponCode=coupon_code if discount > 0 else None,
    )


class PricingService:
    """Recomputes order amounts, ignoring anything the client asserts."""

    @staticmethod
    def validate_cart(items: list[CartItem]) -> None:
        """Reject empty carts and non-positive quantities."""
        if not items:
            raise InvalidOrderInput("Cart is empty")
        for item in items:
            if item.quantity <= 0:
                raise InvalidOrderInput(
                    f"Quantity for product {item.productId} must be a positive integer"
                )

    async def reprice(self, items: list[CartItem], coupon_code: Optional[str] = None) -> RepricedCart:
        """Resolve catalog prices for a cart and apply an optional coupon.

        Raises:
            InvalidOrderInput: empty cart or bad quantity.
            ProductNotFound: any line references an unknown product.
        """
        self.validate_cart(items)

        validated: list[OrderItem] = []
        subtotal = Decimal(0)
        for item in items:
            product = await catalog_service.get_product(item.productId)
            subtotal += to_decimal(product.price) * item.quantity
            validated.append(
                OrderItem(
                    productId=product.productId,
                    name=product.name,
                    quantity=item.quantity,
                    unitPrice=product.price,
                    imageRef=item.imageRef or (product.images[0] if product.images else None),
                )
            )
        subtotal = quantize(subtotal)

        discount = Decimal(0)
        applied_code = None
        if coupon_code and coupon_code.strip():
            coupon = await coupon_service.find_applicable(coupon_code, subtotal)
            if coupon is not None:
                discount = coupon_service.compute_discount(coupon, subtotal)
                applied_code = coupon.code

        return RepricedCart(items=validated, subtotal=subtotal, discount=discount, coupon_code=applied_code)

    @staticmethod
    def audit_claimed(
        claimed: Optional[ClaimedFinancials], computed: Financials, reference: str
    ) -> bool:
        """Compare client-claimed totals with computed ones.

        Returns True when they agree. A disagreement is only logged; the
        computed financials are always the ones used.
        """
        if claimed is None:
            return True

        mismatched = {
            field: {"claimed": value, "computed": getattr(computed, field)}
            for field, value in claimed.model_dump(exclude_none=True).items()
            if quantize(value) != quantize(getattr(computed, field))
        }
        if mismatched:
            logger.warning(
                "Client-claimed financials differ from server totals",
                extra={"payment_reference": reference, "mismatch": mismatched},
            )
            return False
        return True


# Global pricing service instance
pricing_service = PricingService()
