"""Product Repository - Product catalog reads."""
from typing import List, Optional

from storefront.services.models import Category, Product

from .base import BaseRepository


class ProductRepository(BaseRepository):
    """Product and category queries."""

    async def get_all(self, active: bool = True) -> List[Product]:
        """Get all products, newest first."""
        result = await (
            self.client.table("products")
            .select("*")
            .eq("is_active", active)
            .order("created_at", desc=True)
            .execute()
        )
        return [Product(**p) for p in result.data]

    async def get_featured(self, limit: int = 8) -> List[Product]:
        """Featured products, most viewed first."""
        result = await (
            self.client.table("products")
            .select("*")
            .eq("is_active", True)
            .eq("is_featured", True)
            .order("view_count", desc=True)
            .limit(limit)
            .execute()
        )
        return [Product(**p) for p in result.data]

    async def get_by_id(self, product_id: str) -> Optional[Product]:
        """Get an active product by ID."""
        result = await (
            self.client.table("products")
            .select("*")
            .eq("product_id", product_id)
            .eq("is_active", True)
            .execute()
        )
        if not result.data:
            return None
        return Product(**result.data[0])

    async def get_by_category(self, category_name: str) -> List[Product]:
        result = await (
            self.client.table("products")
            .select("*")
            .eq("category_name", category_name)
            .eq("is_active", True)
            .order("created_at", desc=True)
            .execute()
        )
        return [Product(**p) for p in result.data]

    async def search(self, query: str) -> List[Product]:
        """Case-insensitive substring match on Arabic/English titles, done client-side."""
        needle = query.strip().lower()
        products = await self.get_all()
        if not needle:
            return products
        return [
            p for p in products
            if needle in p.title_ar.lower() or needle in (p.title_en or "").lower()
        ]

    async def get_categories(self) -> List[Category]:
        result = await (
            self.client.table("categories")
            .select("*")
            .eq("is_active", True)
            .order("display_order")
            .execute()
        )
        return [Category(**c) for c in result.data]
