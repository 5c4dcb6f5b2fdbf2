"""Services package."""

from fulfillment.services.catalog_service import CatalogService, catalog_service
from fulfillment.services.coupon_service import CouponService, coupon_service
from fulfillment.services.email_service import (
    EmailService,
    NotificationDispatcher,
    NotificationKind,
    email_service,
    notification_dispatcher,
)
from fulfillment.services.order_service import OrderService, order_service
from fulfillment.services.payment_service import PaystackVerifier, payment_verifier
from fulfillment.services.pricing_service import PricingService, pricing_service

__all__ = [
    "CatalogService",
    "catalog_service",
    "CouponService",
    "coupon_service",
    "EmailService",
    "email_service",
    "NotificationDispatcher",
    "NotificationKind",
    "notification_dispatcher",
    "OrderService",
    "order_service",
    "PaystackVerifier",
    "payment_verifier",
    "PricingService",
    "pricing_service",
]
