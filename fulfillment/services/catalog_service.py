"""Catalog price and delivery-zone lookups."""

import logging

from fulfillment.database.mongodb import mongodb
from fulfillment.errors import ProductNotFound, UnknownDeliveryRegion
from fulfillment.models.product import DeliveryZone, Product

logger = logging.getLogger(__name__)


class CatalogService:
    """Read-only access to the authoritative product and shipping prices."""

    @staticmethod
    async def get_product(product_id: str) -> Product:
        """Get the current catalog entry for a product.

        Raises:
            ProductNotFound: no product with this id exists.
        """
        product = await mongodb.get_product(product_id)
        if product is None:
            logger.info("Product lookup failed: %s", product_id)
            raise ProductNotFound(product_id)
        return product

    @staticmethod
    async def get_shipping_fee(region: str) -> float:
        """Get the shipping fee for the customer's delivery region.

        Raises:
            UnknownDeliveryRegion: no active zone matches the region.
        """
        zone = await mongodb.find_active_zone(region)
        if zone is None:
            raise UnknownDeliveryRegion(region)
        return zone.price

    @staticmethod
    async def list_zones(active_only: bool = True) -> list[DeliveryZone]:
        """List delivery zones."""
        return await mongodb.list_zones(active_only=active_only)

    @staticmethod
    async def create_zone(zone: DeliveryZone) -> DeliveryZone:
        """Create a delivery zone."""
        created = await mongodb.create_zone(zone)
        logger.info("Created delivery zone %s (%.2f)", zone.name, zone.price)
        return created


# Global catalog service instance
catalog_service = CatalogService()
