"""API request and response models."""

from typing import Optional

from pydantic import BaseModel, Field

from fulfillment.models.order import CustomerInfo, OrderStatus

# Characters Paystack allows in a transaction reference
PAYMENT_REFERENCE_PATTERN = r"^[A-Za-z0-9._=-]+$"


class CartItem(BaseModel):
    """Requested cart line. Any price the client sends is ignored."""

    productId: str = Field(..., min_length=1)
    quantity: int = Field(..., description="Must be a positive integer")
    imageRef: Optional[str] = None


class ClaimedFinancials(BaseModel):
    """Totals shown to the customer by the client; kept for audit only."""

    subtotal: Optional[float] = None
    shippingFee: Optional[float] = None
    discount: Optional[float] = None
    total: Optional[float] = None


class CreateOrderRequest(BaseModel):
    """Order creation request model."""

    customer: CustomerInfo
    items: list[CartItem] = Field(..., min_length=1)
    couponCode: Optional[str] = Field(None, max_length=50)
    paymentReference: str = Field(
        ..., min_length=1, max_length=200, pattern=PAYMENT_REFERENCE_PATTERN
    )
    claimedFinancials: Optional[ClaimedFinancials] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "customer": {
                    "name": "Ada Obi",
                    "email": "ada@example.com",
                    "phone": "+2348012345678",
                    "address": "12 Marina Road",
                    "region": "Lagos",
                },
                "items": [{"productId": "p1", "quantity": 2}],
                "couponCode": "SAVE10",
                "paymentReference": "T123456789",
                "claimedFinancials": {"subtotal": 10000, "shippingFee": 1000, "total": 10000},
            }
        }
    }


class StatusUpdateRequest(BaseModel):
    """Operator status transition request."""

    status: OrderStatus


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str
    message: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    services: dict[str, str]
