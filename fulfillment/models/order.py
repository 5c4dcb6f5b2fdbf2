"""Order data models."""

from datetime import UTC, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class OrderStatus(str, Enum):
    """Lifecycle states of an order."""

    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """How the payment behind an order was confirmed."""

    SUCCESS = "success"
    UNVERIFIED = "unverified"


class CustomerInfo(BaseModel):
    """Customer details captured at order time."""

    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: str = Field(..., min_length=5, max_length=30)
    address: str = Field(..., min_length=1, max_length=500)
    region: str = Field(..., min_length=1, max_length=100, description="Delivery state/region")

    model_config = {"frozen": True}


class OrderItem(BaseModel):
    """Line item snapshot; unitPrice always comes from the catalog."""

    productId: str
    name: str
    quantity: int = Field(..., ge=1)
    unitPrice: float = Field(..., ge=0)
    imageRef: Optional[str] = None

    model_config = {"frozen": True}


class Financials(BaseModel):
    """Server-derived order amounts in major currency units."""

    subtotal: float = Field(..., ge=0)
    shippingFee: float = Field(..., ge=0)
    discount: float = Field(0, ge=0)
    total: float = Field(..., ge=0)
    couponCode: Optional[str] = Field(None, description="Code the discount came from")

    model_config = {"frozen": True}


class PaymentProof(BaseModel):
    """Result of a payment provider lookup."""

    reference: str = Field(..., min_length=1)
    verifiedAmount: int = Field(..., description="Amount paid in minor units (kobo)")
    status: PaymentStatus = PaymentStatus.SUCCESS

    model_config = {"frozen": True}


class OrderInDB(BaseModel):
    """Order model as stored in database."""

    orderId: str = Field(..., description="Human-readable order id")
    customer: CustomerInfo
    items: list[OrderItem] = Field(..., min_length=1)
    financials: Financials
    payment: PaymentProof
    status: OrderStatus = OrderStatus.PENDING
    createdAt: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updatedAt: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {
        "json_schema_extra": {
            "example": {
                "orderId": "ORD-482913-0042",
                "customer": {
                    "name": "Ada Obi",
                    "email": "ada@example.com",
                    "phone": "+2348012345678",
                    "address": "12 Marina Road",
                    "region": "Lagos",
                },
                "items": [
                    {
                        "productId": "p1",
                        "name": "Clinical Anatomy Atlas",
                        "quantity": 2,
                        "unitPrice": 5000.0,
                        "imageRef": None,
                    }
                ],
                "financials": {
                    "subtotal": 10000.0,
                    "shippingFee": 1000.0,
                    "discount": 0.0,
                    "total": 11000.0,
                    "couponCode": None,
                },
                "payment": {
                    "reference": "T123456789",
                    "verifiedAmount": 1100000,
                    "status": "success",
                },
                "status": "pending",
                "createdAt": "2024-09-06T03:28:26Z",
                "updatedAt": "2024-09-06T03:28:26Z",
            }
        },
    }

    def to_document(self) -> dict:
        """Serialize for MongoDB storage."""
        return self.model_dump(mode="json") | {
            "createdAt": self.createdAt,
            "updatedAt": self.updatedAt,
        }
