"""
Cart Router

Endpoints over the process-wide cart. Stock is clamped here, before the
cart manager is called; the manager itself never looks at stock.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from storefront.cart import CartManager, ProductSnapshot, clamp_to_stock
from storefront.checkout.pricing import calculate_summary
from storefront.config import WHATSAPP_PHONE
from storefront.errors import ERROR_CATALOG_UNAVAILABLE, ERROR_INTERNAL, REASON_INVALID_QUANTITY
from storefront.i18n import get_text
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.messaging import build_cart_message, whatsapp_url
from storefront.services.money import format_price

from .deps import get_cart_manager, get_db, get_lang, get_site_settings
from .models import AddToCartRequest, UpdateCartItemRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/cart", tags=["cart"])


def _format_cart_response(cart: CartManager, lang: str, settings: dict, promo: Optional[str] = None, **extra) -> dict:
    """Cart lines and totals, plus the cart-page order summary (shipping, promo, no tax)."""
    snapshot = cart.snapshot()
    summary = calculate_summary(snapshot, promo)
    symbol = settings.get("currency_symbol")
    return {
        **snapshot.to_dict(),
        "order_summary": summary.to_dict(),
        "display": {
            "total_price": format_price(snapshot.total_price, symbol, lang=lang),
            "total": format_price(summary.total, symbol, lang=lang),
        },
        "currency_symbol": symbol,
        **extra,
    }


@router.get("")
async def get_cart(
    promo: Optional[str] = None,
    cart: CartManager = Depends(get_cart_manager),
    lang: str = Depends(get_lang),
    settings: dict = Depends(get_site_settings),
):
    """Current cart."""
    return _format_cart_response(cart, lang, settings, promo)


@router.post("/items")
async def add_to_cart(
    request: AddToCartRequest,
    cart: CartManager = Depends(get_cart_manager),
    db=Depends(get_db),
    lang: str = Depends(get_lang),
    settings: dict = Depends(get_site_settings),
):
    """Add a catalog product, clamped to what is left in stock."""
    if request.quantity < 1:
        raise HTTPException(status_code=400, detail=get_text("cart.invalid_quantity", lang))
    if db is None:
        raise HTTPException(status_code=503, detail=ERROR_CATALOG_UNAVAILABLE)

    try:
        product = await db.get_product_by_id(request.product_id)
    except Exception as e:
        logger.error(f"Failed to fetch product {sanitize_id_for_logging(request.product_id)}: {e}", exc_info=True)
        raise HTTPException(status_code=502, detail=ERROR_INTERNAL)
    if product is None:
        raise HTTPException(status_code=404, detail=get_text("cart.product_not_found", lang))

    snapshot = ProductSnapshot.from_product(product)
    allowed = clamp_to_stock(snapshot, request.quantity, cart.get_item_quantity(snapshot.product_id))
    if allowed == 0:
        raise HTTPException(status_code=400, detail=get_text("cart.out_of_stock", lang))

    result = cart.add_item(snapshot, allowed)
    if not result.ok:
        raise HTTPException(status_code=400, detail=get_text(f"cart.{result.reason}", lang))

    return _format_cart_response(
        cart, lang, settings,
        added=allowed,
        clamped=allowed != request.quantity,
        message=get_text("cart.added", lang),
    )


@router.patch("/items/{product_id}")
async def update_cart_item(
    product_id: str,
    request: UpdateCartItemRequest,
    cart: CartManager = Depends(get_cart_manager),
    lang: str = Depends(get_lang),
    settings: dict = Depends(get_site_settings),
):
    """Set a line's quantity (0 or less removes it), clamped to the stored stock."""
    quantity = request.quantity
    line = next((item for item in cart.items if item.product_id == product_id), None)
    if line is not None and quantity > 0:
        quantity = max(1, clamp_to_stock(line.product, quantity))

    result = cart.update_quantity(product_id, quantity)
    if not result.ok:
        raise HTTPException(status_code=400, detail=get_text(f"cart.{REASON_INVALID_QUANTITY}", lang))

    return _format_cart_response(cart, lang, settings, clamped=quantity != request.quantity and quantity > 0)


@router.delete("/items/{product_id}")
async def remove_cart_item(
    product_id: str,
    cart: CartManager = Depends(get_cart_manager),
    lang: str = Depends(get_lang),
    settings: dict = Depends(get_site_settings),
):
    cart.remove_item(product_id)
    return _format_cart_response(cart, lang, settings, message=get_text("cart.removed", lang))


@router.delete("")
async def clear_cart(
    cart: CartManager = Depends(get_cart_manager),
    lang: str = Depends(get_lang),
    settings: dict = Depends(get_site_settings),
):
    cart.clear_cart()
    return _format_cart_response(cart, lang, settings, message=get_text("cart.cleared", lang))


@router.get("/status/{product_id}")
async def cart_item_status(product_id: str, cart: CartManager = Depends(get_cart_manager)):
    """Whether a product is in the cart and how many."""
    return {
        "product_id": product_id,
        "in_cart": cart.is_in_cart(product_id),
        "quantity": cart.get_item_quantity(product_id),
    }


@router.get("/whatsapp")
async def cart_whatsapp_link(
    promo: Optional[str] = None,
    cart: CartManager = Depends(get_cart_manager),
    lang: str = Depends(get_lang),
    settings: dict = Depends(get_site_settings),
):
    """Prefilled WhatsApp order message for the current cart."""
    snapshot = cart.snapshot()
    if snapshot.is_empty:
        raise HTTPException(status_code=400, detail=get_text("cart.empty", lang))
    message = build_cart_message(
        snapshot,
        calculate_summary(snapshot, promo),
        lang=lang,
        currency_symbol=settings.get("currency_symbol"),
    )
    return {"url": whatsapp_url(WHATSAPP_PHONE, message), "message": message}
