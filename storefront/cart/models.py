"""Cart models with Decimal-based pricing."""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from storefront.services.money import multiply


def _parse_price(value: Any) -> Decimal:
    """Strict price parsing: numbers or numeric strings, finite, never negative."""
    if isinstance(value, bool) or value is None:
        raise ValueError(f"invalid price: {value!r}")
    try:
        price = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ValueError(f"invalid price: {value!r}") from e
    if not price.is_finite() or price < 0:
        raise ValueError(f"invalid price: {value!r}")
    return price


def is_valid_price(value: Any) -> bool:
    """True when `value` parses as a finite, non-negative price."""
    try:
        _parse_price(value)
    except ValueError:
        return False
    return True


def _as_decimal(value: Any) -> Any:
    """Numeric input as Decimal; anything unparseable is kept as given so it can be rejected."""
    if isinstance(value, (Decimal, bool)) or value is None:
        return value
    try:
        return Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return value


@dataclass(frozen=True)
class ProductSnapshot:
    """
    The product reference stored inside a line item.

    Captured once when the product is added; the cart prices the line with
    this snapshot for the rest of the session and never re-fetches it.
    """
    product_id: str
    price: Decimal
    title_ar: str = ""
    title_en: Optional[str] = None
    stock: int = 0
    thumbnail_url: Optional[str] = None
    whatsapp_message_text: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "price", _as_decimal(self.price))

    def title(self, lang: str = "ar") -> str:
        if lang == "en" and self.title_en:
            return self.title_en
        return self.title_ar or self.title_en or self.product_id

    @classmethod
    def from_product(cls, product) -> "ProductSnapshot":
        """Build a snapshot from a catalog Product (or anything with the same attributes)."""
        return cls(
            product_id=product.product_id,
            price=product.price,
            title_ar=product.title_ar,
            title_en=getattr(product, "title_en", None),
            stock=getattr(product, "stock", 0) or 0,
            thumbnail_url=getattr(product, "thumbnail_url", None),
            whatsapp_message_text=getattr(product, "whatsapp_message_text", None),
        )

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "price": str(self.price),
            "title_ar": self.title_ar,
            "title_en": self.title_en,
            "stock": self.stock,
            "thumbnail_url": self.thumbnail_url,
            "whatsapp_message_text": self.whatsapp_message_text,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProductSnapshot":
        """
        Create from a stored dict.

        Accepts the full catalog record written by older clients (extra keys
        are ignored, price may be a JSON number).

        Raises:
            ValueError: If the id or price is missing or malformed
        """
        if not isinstance(data, dict):
            raise ValueError("product must be an object")
        product_id = data.get("product_id")
        if not isinstance(product_id, str) or not product_id:
            raise ValueError("product_id must be a non-empty string")
        stock = data.get("stock", 0)
        if isinstance(stock, bool) or not isinstance(stock, int) or stock < 0:
            stock = 0
        return cls(
            product_id=product_id,
            price=_parse_price(data.get("price")),
            title_ar=data.get("title_ar") or "",
            title_en=data.get("title_en"),
            stock=stock,
            thumbnail_url=data.get("thumbnail_url"),
            whatsapp_message_text=data.get("whatsapp_message_text"),
        )


@dataclass(frozen=True)
class CartItem:
    """Single line in the cart: one product snapshot and its quantity (>= 1)."""
    product: ProductSnapshot
    quantity: int

    @property
    def product_id(self) -> str:
        return self.product.product_id

    @property
    def line_total(self) -> Decimal:
        """Unit price times quantity."""
        return multiply(self.product.price, self.quantity)

    def to_dict(self) -> dict:
        return {"product": self.product.to_dict(), "quantity": self.quantity}

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        """
        Create from a stored dict.

        Raises:
            ValueError: If the entry is malformed
        """
        if not isinstance(data, dict):
            raise ValueError("cart item must be an object")
        quantity = data.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValueError(f"quantity must be an integer, got {quantity!r}")
        return cls(product=ProductSnapshot.from_dict(data.get("product")), quantity=quantity)


@dataclass(frozen=True)
class CartSnapshot:
    """Line items plus the totals derived from them."""
    items: tuple[CartItem, ...] = ()
    total_items: int = 0
    total_price: Decimal = field(default_factory=lambda: Decimal("0"))

    @classmethod
    def from_items(cls, items: Iterable[CartItem]) -> "CartSnapshot":
        """Recompute both totals from scratch."""
        items = tuple(items)
        return cls(
            items=items,
            total_items=sum(item.quantity for item in items),
            total_price=sum((item.line_total for item in items), Decimal("0")),
        )

    @property
    def is_empty(self) -> bool:
        return not self.items

    def to_dict(self) -> dict:
        """Plain view for JSON responses."""
        return {
            "items": [
                {
                    **item.to_dict(),
                    "line_total": str(item.line_total),
                }
                for item in self.items
            ],
            "total_items": self.total_items,
            "total_price": str(self.total_price),
            "is_empty": self.is_empty,
        }
