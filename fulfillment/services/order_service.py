"""Order creation pipeline and status management."""

import logging
from typing import Optional

from fulfillment.config import get_settings
from fulfillment.database.mongodb import mongodb
from fulfillment.errors import (
    InvalidStatusTransition,
    OrderIdCollision,
    OrderNotFound,
    OrderPersistenceError,
)
from fulfillment.models.order import (
    CustomerInfo,
    Financials,
    OrderInDB,
    OrderItem,
    OrderStatus,
    PaymentProof,
)
from fulfillment.models.request import CreateOrderRequest
from fulfillment.services import status_machine
from fulfillment.services.catalog_service import catalog_service
from fulfillment.services.coupon_service import coupon_service
from fulfillment.services.email_service import (
    NotificationDispatcher,
    NotificationKind,
    notification_dispatcher,
)
from fulfillment.services.payment_service import PaystackVerifier, payment_verifier
from fulfillment.services.pricing_service import build_financials, pricing_service
from fulfillment.utils.helpers import generate_order_id, mask_reference
from fulfillment.utils.money import to_decimal, to_minor_units

logger = logging.getLogger(__name__)
settings = get_settings()


class OrderService:
    """Turns a verified payment into a stored order and moves it through its lifecycle."""

    def __init__(
        self,
        verifier: Optional[PaystackVerifier] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
    ) -> None:
        self.verifier = verifier or payment_verifier
        self.dispatcher = dispatcher or notification_dispatcher

    async def create_order(self, request: CreateOrderRequest) -> OrderInDB:
        """Create an order from a cart and a payment reference.

        Steps run strictly in sequence: reprice, resolve shipping, verify the
        payment, persist, redeem the coupon, then notify. Nothing is stored
        unless the payment covers the server-computed total.
        """
        reference = request.paymentReference.strip()
        masked = mask_reference(reference)

        cart = await pricing_service.reprice(request.items, request.couponCode)
        shipping_fee = await catalog_service.get_shipping_fee(request.customer.region)
        financials = build_financials(
            cart.subtotal, to_decimal(shipping_fee), cart.discount, cart.coupon_code
        )
        pricing_service.audit_claimed(request.claimedFinancials, financials, masked)

        proof = await self.verifier.verify(reference, to_minor_units(financials.total))

        order = await self._persist(request.customer, cart.items, financials, proof)
        logger.info(
            "Order %s created for %s (total %.2f)",
            order.orderId,
            masked,
            order.financials.total,
            extra={"order_id": order.orderId, "payment_reference": masked},
        )

        if order.financials.couponCode:
            await self._redeem_coupon(order)

        self.dispatcher.send(NotificationKind.ORDER_CONFIRMATION, order)
        self.dispatcher.send(NotificationKind.ORDER_ALERT, order)
        return order

    async def _persist(
        self,
        customer: CustomerInfo,
        items: list[OrderItem],
        financials: Financials,
        proof: PaymentProof,
    ) -> OrderInDB:
        """Insert the order, retrying with a fresh id on id collisions.

        DuplicateReference propagates immediately; it is not retryable.
        """
        for attempt in range(1, settings.order_id_max_attempts + 1):
            order = OrderInDB(
                orderId=generate_order_id(),
                customer=customer,
                items=items,
                financials=financials,
                payment=proof,
                status=OrderStatus.PENDING,
            )
            try:
                return await mongodb.insert_order(order)
            except OrderIdCollision:
                logger.warning(
                    "Order id %s collided (attempt %d/%d)",
                    order.orderId,
                    attempt,
                    settings.order_id_max_attempts,
                )

        logger.error(
            "Could not allocate a unique order id for payment %s",
            mask_reference(proof.reference),
            extra={"payment_reference": mask_reference(proof.reference)},
        )
        raise OrderPersistenceError("Failed to save order")

    async def _redeem_coupon(self, order: OrderInDB) -> None:
        """Count the coupon use. Failures are logged for reconciliation only."""
        code = order.financials.couponCode
        try:
            await coupon_service.redeem(code, order.orderId)
        except Exception as e:
            logger.error(
                "Coupon %s usage not recorded for order %s: %s",
                code,
                order.orderId,
                e,
                extra={"order_id": order.orderId, "coupon_code": code},
            )

    @staticmethod
    async def get_order(order_id: str) -> OrderInDB:
        """Get an order by id."""
        order = await mongodb.get_order(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    @staticmethod
    async def list_orders(
        skip: int = 0, limit: int = 100, status: Optional[OrderStatus] = None
    ) -> list[OrderInDB]:
        """List orders, newest first."""
        return await mongodb.list_orders(skip=skip, limit=limit, status=status)

    async def update_status(self, order_id: str, status: OrderStatus) -> OrderInDB:
        """Move an order to a new status and notify the customer when relevant.

        Raises:
            OrderNotFound: unknown order id.
            InvalidStatusTransition: the status machine refuses the move.
        """
        current = await self.get_order(order_id)
        status_machine.check_transition(current.status, status)

        updated = await mongodb.update_order_status(
            order_id, status, status_machine.allowed_sources(status)
        )
        if updated is None:
            # Status changed between the read and the write
            latest = await self.get_order(order_id)
            raise InvalidStatusTransition(latest.status.value, status.value)

        logger.info(
            "Order %s moved %s -> %s",
            order_id,
            current.status.value,
            status.value,
            extra={"order_id": order_id},
        )

        if status_machine.should_notify(status):
            self.dispatcher.send(NotificationKind.STATUS_UPDATE, updated)
        return updated


# Global order service instance
order_service = OrderService()
