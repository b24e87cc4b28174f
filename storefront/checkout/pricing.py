"""Order summary pricing: shipping, promo discount and tax over a cart snapshot."""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from storefront import config
from storefront.cart.models import CartSnapshot
from storefront.services.money import percent, round_money, to_float

ZERO = Decimal("0")

# code -> (kind, value); percent values are fractions of the subtotal
PROMO_CODES: dict[str, tuple[str, Decimal]] = {
    "WELCOME10": ("percent", Decimal("0.10")),
    "SAVE50": ("fixed", Decimal("50")),
}


@dataclass(frozen=True)
class OrderSummary:
    subtotal: Decimal
    shipping: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal
    promo_code: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "subtotal": to_float(self.subtotal),
            "shipping": to_float(self.shipping),
            "discount": to_float(self.discount),
            "tax": to_float(self.tax),
            "total": to_float(self.total),
            "promo_code": self.promo_code,
        }


def calculate_shipping(subtotal: Decimal) -> Decimal:
    """Flat rate, free at or above the threshold, nothing for an empty cart."""
    if subtotal <= 0:
        return ZERO
    if subtotal >= config.FREE_SHIPPING_THRESHOLD:
        return ZERO
    return config.SHIPPING_COST


def normalize_promo_code(code: Optional[str]) -> Optional[str]:
    if not code or not code.strip():
        return None
    return code.strip().upper()


def calculate_discount(subtotal: Decimal, promo_code: Optional[str]) -> Decimal:
    """Discount for a promo code; unknown codes give nothing. Never above subtotal."""
    code = normalize_promo_code(promo_code)
    if code not in PROMO_CODES:
        return ZERO
    kind, value = PROMO_CODES[code]
    discount = percent(subtotal, value) if kind == "percent" else value
    return round_money(min(discount, subtotal))


def calculate_summary(
    snapshot: CartSnapshot,
    promo_code: Optional[str] = None,
    include_tax: bool = False,
) -> OrderSummary:
    """
    Price a cart snapshot.

    total = subtotal - discount + shipping + tax, with tax (checkout only)
    charged on the discounted subtotal.
    """
    subtotal = round_money(snapshot.total_price)
    discount = calculate_discount(subtotal, promo_code)
    shipping = calculate_shipping(subtotal)
    tax = round_money(percent(subtotal - discount, config.TAX_RATE)) if include_tax else ZERO
    code = normalize_promo_code(promo_code)
    return OrderSummary(
        subtotal=subtotal,
        shipping=shipping,
        discount=discount,
        tax=tax,
        total=round_money(subtotal - discount + shipping + tax),
        promo_code=code if code in PROMO_CODES else None,
    )
