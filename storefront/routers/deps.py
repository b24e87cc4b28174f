"""
Shared Dependencies for Routers

The cart is created once per process and handed to every endpoint through
FastAPI's dependency injection.
"""

from typing import Any, Optional

from fastapi import Header

from storefront.cart import CartManager, CartPersistence, get_cart_storage
from storefront.i18n import detect_language
from storefront.services.database import Database, get_database, is_database_initialized
from storefront.services.settings import default_settings

_cart_manager: Optional[CartManager] = None
_site_settings: dict[str, Any] = default_settings()


def get_cart_manager() -> CartManager:
    """Get or create the process-wide CartManager (hydrated from storage on first use)."""
    global _cart_manager
    if _cart_manager is None:
        _cart_manager = CartManager(CartPersistence(get_cart_storage()))
    return _cart_manager


def get_db() -> Optional[Database]:
    """Database when Supabase is configured and initialized, else None."""
    if not is_database_initialized():
        return None
    return get_database()


def get_site_settings() -> dict[str, Any]:
    return _site_settings


def set_site_settings(settings: dict[str, Any]) -> None:
    global _site_settings
    _site_settings = settings


def get_lang(accept_language: Optional[str] = Header(default=None)) -> str:
    """Response language from the Accept-Language header (Arabic by default)."""
    return detect_language(accept_language)
