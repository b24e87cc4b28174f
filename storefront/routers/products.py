"""
Products Router

Read-only catalog proxy used by the product listing and detail pages.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from storefront.cart import CartManager, ProductSnapshot
from storefront.config import WHATSAPP_PHONE
from storefront.errors import ERROR_CATALOG_UNAVAILABLE, ERROR_INTERNAL, ERROR_PRODUCT_NOT_FOUND
from storefront.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging
from storefront.messaging import build_product_message, whatsapp_url
from storefront.services.money import format_price, to_float

from .deps import get_cart_manager, get_db, get_lang, get_site_settings

logger = get_logger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


def _require_db(db):
    if db is None:
        raise HTTPException(status_code=503, detail=ERROR_CATALOG_UNAVAILABLE)
    return db


def _product_card(product, cart: CartManager, lang: str, symbol: str) -> dict:
    return {
        "product_id": product.product_id,
        "title": product.title(lang),
        "price": to_float(product.price),
        "price_display": format_price(product.price, symbol, lang=lang),
        "stock": product.stock,
        "in_stock": product.stock > 0,
        "low_stock": 0 < product.stock <= 5,
        "thumbnail_url": product.thumbnail_url,
        "category_name": product.category_name,
        "in_cart": cart.is_in_cart(product.product_id),
        "cart_quantity": cart.get_item_quantity(product.product_id),
    }


@router.get("")
async def list_products(
    q: Optional[str] = None,
    category: Optional[str] = None,
    featured: bool = False,
    db=Depends(get_db),
    cart: CartManager = Depends(get_cart_manager),
    lang: str = Depends(get_lang),
    settings: dict = Depends(get_site_settings),
):
    """Active products: a title search, one category, the featured shelf, or everything."""
    db = _require_db(db)
    try:
        if q:
            products = await db.search_products(q)
            if category:
                products = [p for p in products if p.category_name == category]
        elif category:
            products = await db.get_products_by_category(category)
        elif featured:
            products = await db.get_featured_products()
        else:
            products = await db.get_products()
    except Exception as e:
        logger.error(f"Failed to list products (q={sanitize_string_for_logging(q or '')}): {e}", exc_info=True)
        raise HTTPException(status_code=502, detail=ERROR_INTERNAL)
    return [_product_card(p, cart, lang, settings.get("currency_symbol")) for p in products]


@router.get("/categories")
async def list_categories(db=Depends(get_db), lang: str = Depends(get_lang)):
    """Active categories in display order."""
    db = _require_db(db)
    try:
        categories = await db.get_categories()
    except Exception as e:
        logger.error(f"Failed to list categories: {e}", exc_info=True)
        raise HTTPException(status_code=502, detail=ERROR_INTERNAL)
    return [
        {
            "category_id": c.category_id,
            "name": c.name_en if lang == "en" and c.name_en else c.name_ar,
            "image_url": c.image_url,
        }
        for c in categories
    ]


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    db=Depends(get_db),
    cart: CartManager = Depends(get_cart_manager),
    lang: str = Depends(get_lang),
    settings: dict = Depends(get_site_settings),
):
    """Product detail with its WhatsApp inquiry link."""
    db = _require_db(db)
    try:
        product = await db.get_product_by_id(product_id)
    except Exception as e:
        logger.error(f"Failed to fetch product {sanitize_id_for_logging(product_id)}: {e}", exc_info=True)
        raise HTTPException(status_code=502, detail=ERROR_INTERNAL)
    if product is None:
        raise HTTPException(status_code=404, detail=ERROR_PRODUCT_NOT_FOUND)

    symbol = settings.get("currency_symbol")
    message = build_product_message(ProductSnapshot.from_product(product), lang, symbol)
    return {
        **_product_card(product, cart, lang, symbol),
        "description": product.short_desc_en if lang == "en" and product.short_desc_en else product.short_desc_ar,
        "image_urls": product.image_urls,
        "whatsapp_url": whatsapp_url(WHATSAPP_PHONE, message),
    }
