"""
Order placement.

Reads the cart snapshot, builds the `orders` / `order_items` rows, submits
them to Supabase and takes the ordered lines out of the cart once the order
is stored. Payment is not settled here.
"""
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from storefront.cart.models import CartSnapshot
from storefront.cart.service import CartManager
from storefront.errors import CheckoutValidationError, OrderSubmissionError
from storefront.i18n import get_text
from storefront.logging import describe_lines_for_logging, get_logger, mask_phone_for_logging
from storefront.services.money import to_float

from .form import CheckoutForm, backend_payment_method, validate_all
from .pricing import OrderSummary, calculate_summary

logger = get_logger(__name__)

ORDER_NUMBER_PREFIX = "ALM"
ORDER_CURRENCY = "EGP"

# Inserts are not idempotent: only retry when the request never got through
RETRYABLE_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


def generate_order_number(now: Optional[datetime] = None) -> str:
    """ALM-YYYYMMDD-XXXXXX"""
    now = now or datetime.now(timezone.utc)
    return f"{ORDER_NUMBER_PREFIX}-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"


@dataclass
class PlacedOrder:
    order_number: str
    summary: OrderSummary
    order: dict[str, Any]
    items: list[dict[str, Any]] = field(default_factory=list)
    simulated: bool = False

    def to_dict(self) -> dict:
        return {
            "order_number": self.order_number,
            "summary": self.summary.to_dict(),
            "order": self.order,
            "items": self.items,
            "simulated": self.simulated,
        }


def build_order_row(form: CheckoutForm, summary: OrderSummary, order_number: str) -> dict[str, Any]:
    """`orders` row. Card details are never part of it."""
    notes = form.notes.strip()
    if form.phone2.strip():
        notes = f"{notes}\nphone2: {form.phone2.strip()}".strip()
    return {
        "order_number": order_number,
        "customer_name": form.full_name,
        "customer_phone": form.phone,
        "customer_email": form.email.strip() or None,
        "governorate": form.governorate.strip(),
        "city": form.city.strip(),
        "address": form.address.strip(),
        "payment_method": backend_payment_method(form.payment_method),
        "payment_status": "pending",
        "order_status": "pending",
        "subtotal": to_float(summary.subtotal),
        "shipping_cost": to_float(summary.shipping),
        "discount_amount": to_float(summary.discount),
        "tax_amount": to_float(summary.tax),
        "total_amount": to_float(summary.total),
        "currency": ORDER_CURRENCY,
        "notes": notes or None,
    }


def build_order_item_rows(snapshot: CartSnapshot, order_id: Optional[str]) -> list[dict[str, Any]]:
    """One `order_items` row per cart line, priced from the line's snapshot."""
    return [
        {
            "order_id": order_id,
            "product_id": item.product_id,
            "product_title": item.product.title_ar or item.product.title(),
            "quantity": item.quantity,
            "unit_price": to_float(item.product.price),
            "total_price": to_float(item.line_total),
            "discount_applied": 0,
            "product_snapshot": item.product.to_dict(),
        }
        for item in snapshot.items
    ]


class CheckoutService:
    """
    Places orders from the current cart.

    Without a database (Supabase not configured) the order is only logged,
    as the storefront does in its offline mode.
    """

    def __init__(self, cart: CartManager, db=None, max_attempts: int = 3):
        self.cart = cart
        self.db = db
        self.max_attempts = max_attempts

    def quote(self, promo_code: Optional[str] = None) -> OrderSummary:
        """Checkout summary (with tax) for the current cart."""
        return calculate_summary(self.cart.snapshot(), promo_code, include_tax=True)

    async def place_order(
        self,
        form: CheckoutForm,
        promo_code: Optional[str] = None,
        lang: str = "ar",
    ) -> PlacedOrder:
        """
        Validate, submit and take the ordered lines out of the cart.

        Raises:
            CheckoutValidationError: Empty cart or invalid form (cart untouched)
            OrderSubmissionError: The backend failed (cart untouched, no
                partial order left behind)
        """
        snapshot = self.cart.snapshot()
        if snapshot.is_empty:
            raise CheckoutValidationError({"cart": get_text("checkout.cart_empty", lang)})

        errors = validate_all(form, lang)
        if errors:
            raise CheckoutValidationError(errors)

        summary = calculate_summary(snapshot, promo_code, include_tax=True)
        order_number = generate_order_number()
        order_row = build_order_row(form, summary, order_number)

        if self.db is None:
            logger.info(
                f"Simulated order {order_number} for {mask_phone_for_logging(form.phone)}: "
                f"{describe_lines_for_logging(snapshot.items)}, total {summary.total}"
            )
            placed = PlacedOrder(
                order_number=order_number,
                summary=summary,
                order=order_row,
                items=build_order_item_rows(snapshot, None),
                simulated=True,
            )
        else:
            placed = await self._submit(snapshot, summary, order_row, order_number)

        self.cart.remove_ordered(snapshot)
        return placed

    async def _submit(
        self,
        snapshot: CartSnapshot,
        summary: OrderSummary,
        order_row: dict[str, Any],
        order_number: str,
    ) -> PlacedOrder:
        try:
            stored = await self._with_retry(self.db.create_order, order_row)
        except Exception as e:
            logger.error(f"Failed to submit order {order_number}: {e}", exc_info=True)
            raise OrderSubmissionError(f"Failed to submit order {order_number}") from e

        order_id = stored.get("order_id")
        item_rows = build_order_item_rows(snapshot, order_id)
        try:
            stored_items = await self._with_retry(self.db.create_order_items, item_rows)
        except Exception as e:
            logger.error(f"Failed to store items of order {order_number}: {e}", exc_info=True)
            await self._discard_order(order_id, order_number)
            raise OrderSubmissionError(f"Failed to submit order {order_number}") from e

        logger.info(
            f"Order {order_number} stored for {mask_phone_for_logging(order_row['customer_phone'])}: "
            f"{describe_lines_for_logging(snapshot.items)}, total {summary.total}"
        )
        return PlacedOrder(
            order_number=order_number,
            summary=summary,
            order=stored,
            items=stored_items or item_rows,
        )

    async def _discard_order(self, order_id: Optional[str], order_number: str) -> None:
        """Delete an order row whose items could not be stored."""
        if not order_id:
            return
        try:
            await self.db.delete_order(order_id)
        except Exception as e:
            logger.error(f"Order {order_number} left without items, delete failed: {e}", exc_info=True)
        else:
            logger.warning(f"Deleted order {order_number} after its items failed to store")

    async def _with_retry(self, func, *args):
        """Retry connection failures (the request never reached the backend) with exponential backoff."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=4),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            reraise=True,
        ):
            with attempt:
                return await func(*args)
