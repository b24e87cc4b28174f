"""
Repository Pattern for Supabase access

- ProductRepository: catalog, categories, client-side search
- OrderRepository: order and order item inserts
- SettingsRepository: public site settings
"""
from .order_repo import OrderRepository
from .product_repo import ProductRepository
from .settings_repo import SettingsRepository

__all__ = [
    "OrderRepository",
    "ProductRepository",
    "SettingsRepository",
]
