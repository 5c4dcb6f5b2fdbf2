"""API routes for orders, coupons and delivery zones."""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, status

from fulfillment.config import get_settings
from fulfillment.database.mongodb import mongodb
from fulfillment.errors import AdminAuthError
from fulfillment.models.coupon import (
    CouponCreate,
    CouponInDB,
    CouponVerifyRequest,
    CouponVerifyResponse,
)
from fulfillment.models.order import OrderInDB, OrderStatus
from fulfillment.models.product import DeliveryZone, DeliveryZoneCreate
from fulfillment.models.request import (
    CreateOrderRequest,
    ErrorResponse,
    HealthResponse,
    StatusUpdateRequest,
)
from fulfillment.services.catalog_service import catalog_service
from fulfillment.services.coupon_service import coupon_service
from fulfillment.services.order_service import order_service

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix=settings.api_prefix)


async def require_admin(
    admin_secret: Optional[str] = Header(None, alias="X-Admin-Secret"),
) -> None:
    """Guard operator endpoints when an admin secret is configured."""
    if not settings.admin_secret:
        return
    if not admin_secret or not secrets.compare_digest(admin_secret, settings.admin_secret):
        raise AdminAuthError("Admin credentials required")


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    mongodb_status = "connected" if mongodb.db is not None else "disconnected"
    if settings.payment_verification_enabled:
        payments_status = "configured" if settings.paystack_secret_key else "not_configured"
    else:
        payments_status = "verification_disabled"

    return HealthResponse(
        status="healthy" if mongodb_status == "connected" and payments_status == "configured" else "degraded",
        version=settings.app_version,
        services={
            "mongodb": mongodb_status,
            "payments": payments_status,
            "email": "configured" if settings.smtp_configured else "not_configured",
        },
    )


# ── Orders ────────────────────────────────────────────────────────────────


@router.post(
    "/orders",
    response_model=OrderInDB,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        402: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def create_order(request: CreateOrderRequest) -> OrderInDB:
    """Create an order after verifying its payment.

    Prices, discount and total are recomputed on the server; the
    ``claimedFinancials`` sent by the client are only compared for audit.
    """
    return await order_service.create_order(request)


@router.get("/orders", response_model=list[OrderInDB], dependencies=[Depends(require_admin)])
async def list_orders(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
) -> list[OrderInDB]:
    """List orders, newest first."""
    return await order_service.list_orders(skip=skip, limit=limit, status=order_status)


@router.get("/orders/{order_id}", response_model=OrderInDB, dependencies=[Depends(require_admin)])
async def get_order(order_id: str) -> OrderInDB:
    """Get order by ID."""
    return await order_service.get_order(order_id)


@router.patch(
    "/orders/{order_id}/status",
    response_model=OrderInDB,
    dependencies=[Depends(require_admin)],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_order_status(order_id: str, request: StatusUpdateRequest) -> OrderInDB:
    """Move an order to a new status.

    Shipped and delivered transitions email the customer.
    """
    return await order_service.update_status(order_id, request.status)


# ── Coupons ───────────────────────────────────────────────────────────────


@router.post("/coupons/verify", response_model=CouponVerifyResponse)
async def verify_coupon(request: CouponVerifyRequest) -> CouponVerifyResponse:
    """Check a coupon at checkout. Does not consume a use."""
    return await coupon_service.verify_coupon(request.code, request.subtotal)


@router.post(
    "/coupons",
    response_model=CouponInDB,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_coupon(coupon: CouponCreate) -> CouponInDB:
    """Create a new coupon."""
    return await coupon_service.create_coupon(coupon)


@router.get("/coupons", response_model=list[CouponInDB], dependencies=[Depends(require_admin)])
async def list_coupons() -> list[CouponInDB]:
    """List all coupons."""
    return await coupon_service.list_coupons()


@router.patch(
    "/coupons/{code}/toggle", response_model=CouponInDB, dependencies=[Depends(require_admin)]
)
async def toggle_coupon(code: str) -> CouponInDB:
    """Activate or deactivate a coupon."""
    return await coupon_service.toggle_coupon(code)


@router.delete("/coupons/{code}", dependencies=[Depends(require_admin)])
async def delete_coupon(code: str) -> dict[str, str]:
    """Delete a coupon."""
    await coupon_service.delete_coupon(code)
    return {"message": "Coupon deleted successfully"}


# ── Delivery zones ────────────────────────────────────────────────────────


@router.get("/delivery-zones", response_model=list[DeliveryZone])
async def list_delivery_zones() -> list[DeliveryZone]:
    """List active delivery zones."""
    return await catalog_service.list_zones(active_only=True)


@router.post(
    "/delivery-zones",
    response_model=DeliveryZone,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
    responses={409: {"model": ErrorResponse}},
)
async def create_delivery_zone(zone: DeliveryZoneCreate) -> DeliveryZone:
    """Create a delivery zone."""
    return await catalog_service.create_zone(DeliveryZone(**zone.model_dump()))
