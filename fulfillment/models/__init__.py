"""Data models package."""

from fulfillment.models.coupon import (
    CouponCreate,
    CouponInDB,
    CouponType,
    CouponVerifyRequest,
    CouponVerifyResponse,
)
from fulfillment.models.order import (
    CustomerInfo,
    Financials,
    OrderInDB,
    OrderItem,
    OrderStatus,
    PaymentProof,
    PaymentStatus,
)
from fulfillment.models.product import DeliveryZone, DeliveryZoneCreate, Product
from fulfillment.models.request import (
    CartItem,
    ClaimedFinancials,
    CreateOrderRequest,
    ErrorResponse,
    HealthResponse,
    StatusUpdateRequest,
)

__all__ = [
    # Order models
    "CustomerInfo",
    "Financials",
    "OrderInDB",
    "OrderItem",
    "OrderStatus",
    "PaymentProof",
    "PaymentStatus",
    # Coupon models
    "CouponCreate",
    "CouponInDB",
    "CouponType",
    "CouponVerifyRequest",
    "CouponVerifyResponse",
    # Catalog models
    "Product",
    "DeliveryZone",
    "DeliveryZoneCreate",
    # Request/Response models
    "CartItem",
    "ClaimedFinancials",
    "CreateOrderRequest",
    "StatusUpdateRequest",
    "HealthResponse",
    "ErrorResponse",
]
