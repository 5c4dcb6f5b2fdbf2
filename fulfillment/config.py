"""Application configuration management using Pydantic Settings."""
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the directory where config.py is located
BASE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application
    app_name: str = "Order Fulfillment Service"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = Field(default="development", pattern="^(development|staging|production)$")

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_prefix: str = "/api/v1"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # MongoDB
    mongodb_url: str = Field(default="mongodb://localhost:27017")
    mongodb_database: str = "medico_store"
    mongodb_order_collection: str = "orders"
    mongodb_coupon_collection: str = "coupons"
    mongodb_product_collection: str = "products"
    mongodb_zone_collection: str = "delivery_zones"
    mongodb_max_pool_size: int = 10
    mongodb_min_pool_size: int = 1

    # Paystack
    paystack_secret_key: str = Field(default="", description="Paystack secret key")
    paystack_base_url: str = "https://api.paystack.co"
    payment_timeout_seconds: float = 10.0
    payment_verification_enabled: bool = Field(
        default=True,
        description="Disable only in development/staging; orders are then stored as unverified",
    )

    # Orders
    order_id_max_attempts: int = Field(default=3, ge=1, le=10)

    # Email (SMTP)
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: str = Field(default="", description="SMTP username")
    smtp_password: str = Field(default="", description="SMTP password")
    smtp_from_email: str = Field(default="")
    admin_email: str = Field(default="", description="Recipient of new-order alerts")
    admin_url: str = "http://localhost:5173"

    # Operator access
    admin_secret: str = Field(default="", description="Value expected in the X-Admin-Secret header")

    # Rate Limiting
    rate_limit_enabled: bool = True
    rate_limit_requests: int = 100
    rate_limit_period: int = 60  # seconds

    # Logging
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_format: str = "json"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR.parent / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @model_validator(mode="after")
    def check_payment_verification(self) -> "Settings":
        """Refuse to start a production service that skips payment verification."""
        if not self.payment_verification_enabled and self.environment == "production":
            raise ValueError("payment_verification_enabled cannot be false in production")
        return self

    @property
    def smtp_configured(self) -> bool:
        """Whether outbound email can be sent."""
        return bool(self.smtp_host and self.smtp_from_email)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
