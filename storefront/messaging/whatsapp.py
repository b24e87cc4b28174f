"""
WhatsApp order links.

The storefront has no online payment; customers confirm orders by sending
a prefilled WhatsApp message to the store.
"""
import re
from typing import Optional
from urllib.parse import quote

from storefront import config
from storefront.cart.models import CartSnapshot, ProductSnapshot
from storefront.checkout.pricing import OrderSummary, calculate_summary
from storefront.i18n import get_text
from storefront.services.money import format_price


def whatsapp_url(phone: str, message: str) -> str:
    """https://wa.me/<digits>?text=<message>"""
    digits = re.sub(r"[^0-9]", "", phone)
    return f"https://wa.me/{digits}?text={quote(message, safe='')}"


def build_cart_message(
    snapshot: CartSnapshot,
    summary: Optional[OrderSummary] = None,
    lang: str = "ar",
    currency_symbol: str = config.DEFAULT_CURRENCY_SYMBOL,
) -> str:
    """Order confirmation text: one line per item, then subtotal, shipping and total."""
    summary = summary or calculate_summary(snapshot)

    def price(value) -> str:
        return format_price(value, currency_symbol, lang=lang)

    item_lines = [
        get_text(
            "whatsapp.item",
            lang,
            title=item.product.title(lang),
            quantity=item.quantity,
            total=price(item.line_total),
        )
        for item in snapshot.items
    ]

    totals = [
        get_text("whatsapp.subtotal", lang, amount=price(summary.subtotal)),
        get_text("whatsapp.shipping", lang, amount=price(summary.shipping)),
    ]
    if summary.discount > 0:
        totals.append(get_text("whatsapp.discount", lang, amount=price(summary.discount)))
    totals.append(get_text("whatsapp.total", lang, amount=price(summary.total)))

    return "\n\n".join([
        get_text("whatsapp.greeting", lang),
        "\n".join(item_lines),
        "\n".join(totals),
        get_text("whatsapp.closing", lang),
    ])


def build_product_message(
    product: ProductSnapshot,
    lang: str = "ar",
    currency_symbol: str = config.DEFAULT_CURRENCY_SYMBOL,
) -> str:
    """The product's own WhatsApp text, or a default inquiry line."""
    if product.whatsapp_message_text:
        return product.whatsapp_message_text
    return get_text(
        "whatsapp.product_inquiry",
        lang,
        title=product.title(lang),
        price=format_price(product.price, currency_symbol, lang=lang),
    )
