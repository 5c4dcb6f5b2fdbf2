"""Coupon data models."""

from datetime import UTC, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class CouponType(str, Enum):
    """Discount calculation type."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"


DEFAULT_MAX_USES = 999999


def canonical_code(code: str) -> str:
    """Normalize a coupon code for storage and lookup."""
    return code.strip().upper()


class CouponBase(BaseModel):
    """Base coupon model."""

    code: str = Field(..., min_length=1, max_length=50)
    type: CouponType
    value: float = Field(..., gt=0, description="Percent (10 = 10%) or fixed amount")
    minOrderAmount: float = Field(0, ge=0, description="Minimum subtotal to use the coupon")
    expiresAt: Optional[datetime] = None
    maxUses: int = Field(DEFAULT_MAX_USES, ge=1)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        """Store codes upper-case."""
        return canonical_code(v)

    @field_validator("expiresAt")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Treat naive expiry timestamps as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @model_validator(mode="after")
    def check_percentage(self) -> "CouponBase":
        """Percentages cannot exceed 100."""
        if self.type == CouponType.PERCENTAGE and self.value > 100:
            raise ValueError("percentage coupons cannot exceed 100")
        return self


class CouponCreate(CouponBase):
    """Coupon creation model."""

    pass


class CouponInDB(CouponBase):
    """Coupon model as stored in database."""

    isActive: bool = True
    usageCount: int = Field(0, ge=0)
    createdAt: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_document(self) -> dict:
        """Serialize for MongoDB storage."""
        return self.model_dump(mode="json") | {
            "expiresAt": self.expiresAt,
            "createdAt": self.createdAt,
        }

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Whether the coupon has passed its expiry time."""
        if self.expiresAt is None:
            return False
        return self.expiresAt <= (now or datetime.now(UTC))

    def is_exhausted(self) -> bool:
        """Whether the usage cap has been reached."""
        return self.usageCount >= self.maxUses


class CouponVerifyRequest(BaseModel):
    """Public coupon check request."""

    code: str = Field(..., min_length=1)
    subtotal: float = Field(..., ge=0)


class CouponVerifyResponse(BaseModel):
    """Public coupon check response."""

    code: str
    type: CouponType
    value: float
    discount: float
    usageCount: int
    maxUses: int
