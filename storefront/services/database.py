"""
Supabase Database Service

Flat facade over the repositories, created once at startup.

Usage:
    from storefront.services.database import get_database

    # At FastAPI startup (lifespan):
    await init_database()

    db = get_database()
    product = await db.get_product_by_id("P1")
"""

import asyncio
from typing import Any, Dict, List, Optional

from supabase._async.client import AsyncClient

from storefront.db import get_supabase
from storefront.logging import get_logger
from storefront.services.models import Category, Product, SiteSetting
from storefront.services.repositories import OrderRepository, ProductRepository, SettingsRepository

logger = get_logger(__name__)


class Database:
    """
    Supabase access for the storefront.

    Must be built with `Database.create()` or `init_database()`.
    """

    def __init__(self, client: AsyncClient):
        self.client = client
        self.products = ProductRepository(client)
        self.orders = OrderRepository(client)
        self.settings = SettingsRepository(client)

    @classmethod
    async def create(cls) -> "Database":
        """Create the async Supabase client and wire the repositories."""
        client = await get_supabase()
        return cls(client)

    # ==================== CATALOG ====================

    async def get_products(self) -> List[Product]:
        return await self.products.get_all()

    async def get_featured_products(self, limit: int = 8) -> List[Product]:
        return await self.products.get_featured(limit)

    async def get_products_by_category(self, category_name: str) -> List[Product]:
        return await self.products.get_by_category(category_name)

    async def get_product_by_id(self, product_id: str) -> Optional[Product]:
        return await self.products.get_by_id(product_id)

    async def search_products(self, query: str) -> List[Product]:
        return await self.products.search(query)

    async def get_categories(self) -> List[Category]:
        return await self.products.get_categories()

    # ==================== ORDERS ====================

    async def create_order(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self.orders.create_order(data)

    async def create_order_items(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return await self.orders.create_order_items(rows)

    async def delete_order(self, order_id: str) -> None:
        await self.orders.delete_order(order_id)

    # ==================== SETTINGS ====================

    async def get_site_settings(self) -> List[SiteSetting]:
        return await self.settings.get_public_settings()


# Singleton instance
_db: Database | None = None
_db_lock: Optional[asyncio.Lock] = None


def _get_lock() -> asyncio.Lock:
    """Get or create the async lock guarding initialization."""
    global _db_lock
    if _db_lock is None:
        _db_lock = asyncio.Lock()
    return _db_lock


async def init_database() -> Database:
    """
    Initialize the database singleton (FastAPI lifespan).

    Raises:
        ValueError: If Supabase is not configured
    """
    global _db
    if _db is not None:
        return _db

    async with _get_lock():
        if _db is None:
            logger.info("Initializing async Supabase client...")
            _db = await Database.create()
            logger.info("Async Supabase client initialized")
    return _db


def get_database() -> Database:
    """
    Get the database instance.

    Raises:
        RuntimeError: If init_database() has not run
    """
    if _db is None:
        raise RuntimeError("Database not initialized. Call 'await init_database()' at startup.")
    return _db


def is_database_initialized() -> bool:
    return _db is not None


def reset_database() -> None:
    """Forget the singleton (shutdown and tests)."""
    global _db
    _db = None
