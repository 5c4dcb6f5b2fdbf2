"""Database initialization script.

Creates the indexes the order pipeline depends on and seeds a small catalog,
the default delivery zones and a sample coupon.

Usage:
    python -m scripts.init_db
"""

import asyncio
import logging

from fulfillment.database.mongodb import mongodb
from fulfillment.errors import CouponAlreadyExists
from fulfillment.models.coupon import CouponCreate, CouponType
from fulfillment.models.product import DeliveryZone, Product
from fulfillment.services.coupon_service import coupon_service
from fulfillment.utils.logger import setup_logging

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS = [
    Product(productId="atlas-001", name="Clinical Anatomy Atlas", price=5000.0, stockCount=20),
    Product(productId="steth-001", name="Dual-Head Stethoscope", price=18500.0, stockCount=8),
    Product(productId="coat-001", name="Lab Coat (Unisex)", price=7500.0, stockCount=30),
]

DEFAULT_ZONES = [
    DeliveryZone(name="Lagos", price=1000.0),
    DeliveryZone(name="Ogun", price=2000.0),
    DeliveryZone(name="Abuja (FCT)", price=3500.0),
    DeliveryZone(name="Other States", price=4500.0),
]


async def init_databases():
    """Initialize indexes and seed reference data."""
    try:
        logger.info("Initializing database...")

        # connect() also creates the indexes
        await mongodb.connect()

        for product in SAMPLE_PRODUCTS:
            await mongodb.upsert_product(product)
            logger.info("Seeded product: %s", product.productId)

        if not await mongodb.list_zones(active_only=False):
            for zone in DEFAULT_ZONES:
                await mongodb.create_zone(zone)
                logger.info("Created delivery zone: %s", zone.name)

        try:
            await coupon_service.create_coupon(
                CouponCreate(code="WELCOME10", type=CouponType.PERCENTAGE, value=10, minOrderAmount=5000)
            )
        except CouponAlreadyExists as e:
            logger.warning("%s", e)

        logger.info("Database initialization completed successfully")

    except Exception as e:
        logger.error("Error initializing database: %s", e)
        raise

    finally:
        await mongodb.disconnect()


if __name__ == "__main__":
    asyncio.run(init_databases())
