"""MongoDB database connection and operations."""

import logging
import re
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import ConnectionFailure, DuplicateKeyError, PyMongoError

from fulfillment.config import get_settings
from fulfillment.errors import (
    CouponAlreadyExists,
    DeliveryZoneAlreadyExists,
    DuplicateReference,
    OrderIdCollision,
    OrderPersistenceError,
)
from fulfillment.models.coupon import CouponInDB, canonical_code
from fulfillment.models.order import OrderInDB, OrderStatus
from fulfillment.models.product import DeliveryZone, Product
from fulfillment.utils.helpers import utc_now

logger = logging.getLogger(__name__)
settings = get_settings()


class MongoDB:
    """MongoDB connection manager and document store."""

    def __init__(self) -> None:
        """Initialize MongoDB connection."""
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self) -> None:
        """Connect to MongoDB."""
        try:
            self.client = AsyncIOMotorClient(
                settings.mongodb_url,
                maxPoolSize=settings.mongodb_max_pool_size,
                minPoolSize=settings.mongodb_min_pool_size,
            )
            self.db = self.client[settings.mongodb_database]

            # Test connection
            await self.client.admin.command("ping")
            logger.info("Connected to MongoDB: %s", settings.mongodb_database)

            # Create indexes
            await self.create_indexes()

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB: %s", e)
            raise

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    def _collection(self, name: str) -> AsyncIOMotorCollection:
        if self.db is None:
            raise ConnectionError("Database not connected")
        return self.db[name]

    @property
    def orders(self) -> AsyncIOMotorCollection:
        return self._collection(settings.mongodb_order_collection)

    @property
    def coupons(self) -> AsyncIOMotorCollection:
        return self._collection(settings.mongodb_coupon_collection)

    @property
    def products(self) -> AsyncIOMotorCollection:
        return self._collection(settings.mongodb_product_collection)

    @property
    def zones(self) -> AsyncIOMotorCollection:
        return self._collection(settings.mongodb_zone_collection)

    async def create_indexes(self) -> None:
        """Create database indexes.

        Unique indexes on ``orderId`` and ``payment.reference`` allow at most
        one order per id and per payment reference.
        """
        await self.orders.create_index("orderId", unique=True, name="orderId_unique")
        await self.orders.create_index(
            "payment.reference", unique=True, name="payment_reference_unique"
        )
        await self.orders.create_index([("createdAt", DESCENDING)], name="createdAt_desc")
        await self.coupons.create_index("code", unique=True, name="code_unique")
        await self.products.create_index("productId", unique=True, name="productId_unique")
        await self.zones.create_index("name", unique=True, name="name_unique")
        logger.info("MongoDB indexes created")

    # ── Orders ────────────────────────────────────────────────────────────

    async def insert_order(self, order: OrderInDB) -> OrderInDB:
        """Insert a new order.

        Raises:
            DuplicateReference: the payment reference already backs an order.
            OrderIdCollision: the generated order id is taken.
            OrderPersistenceError: any other storage failure.
        """
        try:
            await self.orders.insert_one(order.to_document())
            return order
        except DuplicateKeyError:
            existing = await self.orders.find_one(
                {"payment.reference": order.payment.reference}, {"_id": 0, "orderId": 1}
            )
            if existing and existing["orderId"] != order.orderId:
                raise DuplicateReference(order.payment.reference)
            raise OrderIdCollision(order.orderId)
        except PyMongoError as e:
            logger.error("Failed to insert order %s: %s", order.orderId, e)
            raise OrderPersistenceError("Failed to save order") from e

    async def get_order(self, order_id: str) -> Optional[OrderInDB]:
        """Get order by its human-readable id."""
        data = await self.orders.find_one({"orderId": order_id}, {"_id": 0})
        if data:
            return OrderInDB(**data)
        return None

    async def list_orders(
        self, skip: int = 0, limit: int = 100, status: Optional[OrderStatus] = None
    ) -> list[OrderInDB]:
        """List orders, newest first."""
        query: dict[str, Any] = {}
        if status is not None:
            query["status"] = status.value
        cursor = (
            self.orders.find(query, {"_id": 0})
            .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
            .skip(skip)
            .limit(limit)
        )
        orders = await cursor.to_list(length=limit)
        return [OrderInDB(**order) for order in orders]

    async def update_order_status(
        self, order_id: str, status: OrderStatus, allowed_from: frozenset[OrderStatus]
    ) -> Optional[OrderInDB]:
        """Set the status of an order whose current status is in ``allowed_from``.

        Only ``status`` and ``updatedAt`` are written. Returns None when no
        order matched (unknown id, or its status changed underneath us).
        """
        data = await self.orders.find_one_and_update(
            {"orderId": order_id, "status": {"$in": [s.value for s in allowed_from]}},
            {"$set": {"status": status.value, "updatedAt": utc_now()}},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER,
        )
        if data:
            return OrderInDB(**data)
        return None

    # ── Coupons ───────────────────────────────────────────────────────────

    async def get_coupon(self, code: str) -> Optional[CouponInDB]:
        """Get coupon by code, active or not."""
        data = await self.coupons.find_one({"code": canonical_code(code)}, {"_id": 0})
        if data:
            return CouponInDB(**data)
        return None

    async def find_active_coupon(self, code: str) -> Optional[CouponInDB]:
        """Get an active coupon by code."""
        data = await self.coupons.find_one(
            {"code": canonical_code(code), "isActive": True}, {"_id": 0}
        )
        if data:
            return CouponInDB(**data)
        return None

    async def create_coupon(self, coupon: CouponInDB) -> CouponInDB:
        """Create a new coupon."""
        try:
            await self.coupons.insert_one(coupon.to_document())
            return coupon
        except DuplicateKeyError:
            raise CouponAlreadyExists(coupon.code)

    async def list_coupons(self) -> list[CouponInDB]:
        """List all coupons, newest first."""
        cursor = self.coupons.find({}, {"_id": 0}).sort("createdAt", DESCENDING)
        return [CouponInDB(**c) for c in await cursor.to_list(length=None)]

    async def set_coupon_active(self, code: str, is_active: bool) -> Optional[CouponInDB]:
        """Activate or deactivate a coupon."""
        data = await self.coupons.find_one_and_update(
            {"code": canonical_code(code)},
            {"$set": {"isActive": is_active}},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER,
        )
        if data:
            return CouponInDB(**data)
        return None

    async def delete_coupon(self, code: str) -> bool:
        """Delete coupon by code."""
        result = await self.coupons.delete_one({"code": canonical_code(code)})
        return result.deleted_count > 0

    async def increment_coupon_usage(self, code: str, max_uses: int) -> bool:
        """Atomically add one use to a coupon that is still under its cap.

        The cap check and the increment are one conditional update;
        ``usageCount`` never exceeds ``maxUses``. The update only matches while
        the stored cap still equals ``max_uses``. Returns False when nothing
        was updated.
        """
        result = await self.coupons.update_one(
            {
                "code": canonical_code(code),
                "maxUses": max_uses,
                "usageCount": {"$lt": max_uses},
            },
            {"$inc": {"usageCount": 1}},
        )
        return result.modified_count == 1

    # ── Catalog ───────────────────────────────────────────────────────────

    async def get_product(self, product_id: str) -> Optional[Product]:
        """Get product by id."""
        data = await self.products.find_one({"productId": product_id}, {"_id": 0})
        if data:
            return Product(**data)
        return None

    async def upsert_product(self, product: Product) -> None:
        """Insert or replace a catalog product."""
        await self.products.replace_one(
            {"productId": product.productId}, product.model_dump(), upsert=True
        )

    # ── Delivery zones ────────────────────────────────────────────────────

    async def find_active_zone(self, region: str) -> Optional[DeliveryZone]:
        """Get the active delivery zone for a region, ignoring case."""
        data = await self.zones.find_one(
            {
                "name": {"$regex": f"^{re.escape(region.strip())}$", "$options": "i"},
                "isActive": True,
            },
            {"_id": 0},
        )
        if data:
            return DeliveryZone(**data)
        return None

    async def list_zones(self, active_only: bool = True) -> list[DeliveryZone]:
        """List delivery zones sorted by name."""
        query = {"isActive": True} if active_only else {}
        cursor = self.zones.find(query, {"_id": 0}).sort("name", 1)
        return [DeliveryZone(**z) for z in await cursor.to_list(length=None)]

    async def create_zone(self, zone: DeliveryZone) -> DeliveryZone:
        """Create a delivery zone."""
        try:
            await self.zones.insert_one(zone.model_dump())
            return zone
        except DuplicateKeyError:
            raise DeliveryZoneAlreadyExists(zone.name)


# Global MongoDB instance
mongodb = MongoDB()
