"""Cart package: models, storage, and manager."""
from .models import CartItem, CartSnapshot, ProductSnapshot
from .service import CartManager, CartResult, clamp_to_stock
from .storage import (
    CartPersistence,
    CartStorage,
    FileCartStorage,
    MemoryCartStorage,
    RedisCartStorage,
    get_cart_storage,
)

__all__ = [
    "CartItem",
    "CartSnapshot",
    "ProductSnapshot",
    "CartManager",
    "CartResult",
    "clamp_to_stock",
    "CartPersistence",
    "CartStorage",
    "FileCartStorage",
    "MemoryCartStorage",
    "RedisCartStorage",
    "get_cart_storage",
]
