"""Catalog and delivery-zone data models."""

from typing import Optional

from pydantic import BaseModel, Field


class Product(BaseModel):
    """Catalog product as seen by the order pipeline."""

    productId: str = Field(..., description="Unique product identifier")
    name: str = Field(..., min_length=1, max_length=500)
    price: float = Field(..., ge=0, description="Current unit price in NGN")
    images: list[str] = Field(default_factory=list)
    stockCount: Optional[int] = Field(None, ge=0)

    class Config:
        """Pydantic config."""

        json_schema_extra = {
            "example": {
                "productId": "p1",
                "name": "Clinical Anatomy Atlas",
                "price": 5000.0,
                "images": ["https://cdn.example.com/atlas.jpg"],
                "stockCount": 12,
            }
        }


class DeliveryZoneBase(BaseModel):
    """Base delivery zone model."""

    name: str = Field(..., min_length=1, max_length=100)
    price: float = Field(..., ge=0, description="Shipping fee in NGN")


class DeliveryZoneCreate(DeliveryZoneBase):
    """Delivery zone creation model."""

    pass


class DeliveryZone(DeliveryZoneBase):
    """Delivery zone as stored in database."""

    isActive: bool = True
