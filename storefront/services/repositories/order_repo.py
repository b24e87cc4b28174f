"""Order Repository - order placement writes."""
from typing import Any, Dict, List

from .base import BaseRepository


class OrderRepository(BaseRepository):
    """Order database operations."""

    async def create_order(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert an `orders` row and return it as stored."""
        result = await self.client.table("orders").insert(data).execute()
        if not result.data:
            raise ValueError("orders insert returned no row")
        return result.data[0]

    async def delete_order(self, order_id: str) -> None:
        """Remove an `orders` row (an order whose items could not be stored)."""
        await self.client.table("orders").delete().eq("order_id", order_id).execute()

    async def create_order_items(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Insert the `order_items` rows of one order."""
        if not rows:
            return []
        result = await self.client.table("order_items").insert(rows).execute()
        return result.data or []
