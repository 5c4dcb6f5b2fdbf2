"""Exceptions raised by the order pipeline.

Every exception carries the HTTP status and the machine-readable error code
used by the API exception handler in ``fulfillment.main``.
"""

from typing import Optional


class FulfillmentError(Exception):
    """Base exception for all fulfillment errors."""

    status_code: int = 500
    code: str = "FULFILLMENT_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# ── Input errors ──────────────────────────────────────────────────────────


class InvalidOrderInput(FulfillmentError):
    """Raised when a cart or order request is malformed."""

    status_code = 400
    code = "INVALID_ORDER"


class ProductNotFound(InvalidOrderInput):
    """Raised when a cart line references a product missing from the catalog."""

    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class UnknownDeliveryRegion(InvalidOrderInput):
    """Raised when no active delivery zone matches the customer's region."""

    code = "UNKNOWN_DELIVERY_REGION"

    def __init__(self, region: str):
        self.region = region
        super().__init__(f"We do not deliver to '{region}'")


# ── Payment errors ────────────────────────────────────────────────────────


class PaymentError(FulfillmentError):
    """Base class for payment verification failures."""

    status_code = 402
    code = "PAYMENT_FAILED"

    def __init__(self, reference: str, message: str):
        self.reference = reference
        super().__init__(message)


class PaymentNotSuccessful(PaymentError):
    """Raised when the provider reports the charge did not complete."""

    code = "PAYMENT_NOT_SUCCESSFUL"

    def __init__(self, reference: str, provider_status: Optional[str] = None):
        self.provider_status = provider_status
        super().__init__(reference, "Payment has not been completed successfully")


class PaymentAmountMismatch(PaymentError):
    """Raised when the paid amount does not cover the computed order total."""

    code = "PAYMENT_AMOUNT_MISMATCH"

    def __init__(self, reference: str, expected: int, paid: int):
        self.expected = expected
        self.paid = paid
        super().__init__(reference, "Payment amount mismatch. Order rejected.")


class PaymentProviderUnavailable(FulfillmentError):
    """Raised when the payment could not be positively confirmed."""

    status_code = 503
    code = "PAYMENT_PROVIDER_UNAVAILABLE"

    def __init__(self, reference: str, reason: str):
        self.reference = reference
        self.reason = reason
        super().__init__("Could not verify payment right now. Please retry shortly.")


# ── Persistence errors ────────────────────────────────────────────────────


class DuplicateReference(FulfillmentError):
    """Raised when a payment reference already backs a stored order."""

    status_code = 409
    code = "DUPLICATE_PAYMENT_REFERENCE"

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__("This payment has already been processed")


class OrderIdCollision(FulfillmentError):
    """Raised by the store when a generated order id is already taken."""

    code = "ORDER_ID_COLLISION"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order id {order_id} already exists")


class OrderPersistenceError(FulfillmentError):
    """Raised when an order could not be stored."""

    code = "ORDER_PERSISTENCE_FAILED"


# ── Lookup and lifecycle errors ───────────────────────────────────────────


class OrderNotFound(FulfillmentError):
    """Raised when an order id is unknown."""

    status_code = 404
    code = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class InvalidStatusTransition(FulfillmentError):
    """Raised when the status machine refuses a transition."""

    status_code = 409
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move order from '{current}' to '{requested}'")


# ── Coupon errors ─────────────────────────────────────────────────────────


class CouponNotFound(FulfillmentError):
    """Raised when a coupon code does not exist or is inactive."""

    status_code = 404
    code = "COUPON_NOT_FOUND"

    def __init__(self, code: str):
        self.coupon_code = code
        super().__init__("Invalid coupon code")


class CouponNotApplicable(FulfillmentError):
    """Raised by coupon verification when a rule rejects the code."""

    status_code = 400
    code = "COUPON_NOT_APPLICABLE"


class CouponAlreadyExists(FulfillmentError):
    """Raised when creating a coupon whose code is taken."""

    status_code = 409
    code = "COUPON_ALREADY_EXISTS"

    def __init__(self, code: str):
        self.coupon_code = code
        super().__init__(f"Coupon code already exists: {code}")


class DeliveryZoneAlreadyExists(FulfillmentError):
    """Raised when creating a delivery zone whose name is taken."""

    status_code = 409
    code = "DELIVERY_ZONE_ALREADY_EXISTS"

    def __init__(self, name: str):
        self.zone_name = name
        super().__init__(f"Delivery zone already exists: {name}")


class AdminAuthError(FulfillmentError):
    """Raised when an operator endpoint is called without the admin secret."""

    status_code = 401
    code = "UNAUTHORIZED"
