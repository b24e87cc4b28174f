"""Cart manager: the single owner of the storefront's line items."""
import threading
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from storefront.errors import REASON_INVALID_PRODUCT, REASON_INVALID_QUANTITY
from storefront.logging import describe_lines_for_logging, get_logger

from .models import CartItem, CartSnapshot, ProductSnapshot, is_valid_price
from .storage import CartPersistence, CartStorage, MemoryCartStorage

logger = get_logger(__name__)


@dataclass(frozen=True)
class CartResult:
    """Outcome of a cart mutation."""
    ok: bool
    snapshot: CartSnapshot
    reason: Optional[str] = None


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def clamp_to_stock(product: ProductSnapshot, requested: int, already_in_cart: int = 0) -> int:
    """
    Largest quantity that can still be added without passing the stock ceiling.

    Callers clamp before calling add_item/update_quantity; the manager itself
    does not look at stock. Returns 0 when nothing more fits.
    """
    available = max(0, product.stock - already_in_cart)
    return max(0, min(requested, available))


class CartManager:
    """
    Holds the cart for the whole process.

    Features:
    - At most one line per product; re-adding increments the quantity
    - Totals recomputed from the line items after every change
    - Every change is saved through the persistence adapter
    - Stored data is loaded once on construction (empty on any failure)

    Usage:
        manager = CartManager(CartPersistence(FileCartStorage()))
        manager.add_item(ProductSnapshot.from_product(product), 2)
        manager.total_price
    """

    def __init__(self, persistence: Optional[CartPersistence] = None):
        self._persistence = persistence or CartPersistence(MemoryCartStorage())
        self._lock = threading.RLock()
        self._snapshot = CartSnapshot.from_items(self._persistence.load())
        if self._snapshot.items:
            logger.info(f"Cart hydrated: {describe_lines_for_logging(self._snapshot.items)}")

    @classmethod
    def with_storage(cls, storage: CartStorage, key: Optional[str] = None) -> "CartManager":
        """Build a manager persisting into `storage` under `key`."""
        persistence = CartPersistence(storage) if key is None else CartPersistence(storage, key)
        return cls(persistence)

    # ==================== READ ACCESS ====================

    @property
    def items(self) -> tuple[CartItem, ...]:
        return self._snapshot.items

    @property
    def total_items(self) -> int:
        return self._snapshot.total_items

    @property
    def total_price(self) -> Decimal:
        return self._snapshot.total_price

    def snapshot(self) -> CartSnapshot:
        """Current immutable snapshot."""
        return self._snapshot

    def is_in_cart(self, product_id: str) -> bool:
        return any(item.product_id == product_id for item in self._snapshot.items)

    def get_item_quantity(self, product_id: str) -> int:
        for item in self._snapshot.items:
            if item.product_id == product_id:
                return item.quantity
        return 0

    def summary(self) -> dict:
        """Plain dict view of the cart for API responses."""
        return self._snapshot.to_dict()

    # ==================== MUTATIONS ====================

    def add_item(self, product: ProductSnapshot, quantity: int = 1) -> CartResult:
        """
        Add `quantity` units of `product`.

        An existing line for the same product id is incremented (its stored
        snapshot, and so its price, is kept); otherwise a new line is appended.
        Invalid input is rejected without touching the cart.
        """
        if not _is_int(quantity) or quantity < 1:
            return self._reject(REASON_INVALID_QUANTITY, f"add_item quantity={quantity!r}")
        if (
            not isinstance(product, ProductSnapshot)
            or not isinstance(product.product_id, str)
            or not product.product_id
            or not is_valid_price(product.price)
        ):
            return self._reject(REASON_INVALID_PRODUCT, "add_item with malformed product")

        with self._lock:
            items = list(self._snapshot.items)
            for index, item in enumerate(items):
                if item.product_id == product.product_id:
                    items[index] = CartItem(product=item.product, quantity=item.quantity + quantity)
                    break
            else:
                items.append(CartItem(product=product, quantity=quantity))
            return self._commit(items)

    def remove_item(self, product_id: str) -> CartResult:
        """Drop the line for `product_id`. Unknown ids are a no-op."""
        with self._lock:
            if not self.is_in_cart(product_id):
                return CartResult(ok=True, snapshot=self._snapshot)
            items = [item for item in self._snapshot.items if item.product_id != product_id]
            return self._commit(items)

    def update_quantity(self, product_id: str, quantity: int) -> CartResult:
        """
        Set the quantity of an existing line.

        quantity <= 0 removes the line. Unknown ids are a no-op.
        """
        if not _is_int(quantity):
            return self._reject(REASON_INVALID_QUANTITY, f"update_quantity quantity={quantity!r}")
        if quantity <= 0:
            return self.remove_item(product_id)

        with self._lock:
            if not self.is_in_cart(product_id):
                return CartResult(ok=True, snapshot=self._snapshot)
            items = [
                CartItem(product=item.product, quantity=quantity) if item.product_id == product_id else item
                for item in self._snapshot.items
            ]
            return self._commit(items)

    def clear_cart(self) -> CartResult:
        """Empty the cart unconditionally."""
        with self._lock:
            return self._commit([])

    def remove_ordered(self, ordered: CartSnapshot) -> CartResult:
        """
        Take the lines of a placed order out of the cart.

        Clears the cart when it still is the ordered snapshot. Otherwise only
        the ordered quantities are subtracted, so lines added or topped up
        while the order was being submitted stay in the cart.
        """
        with self._lock:
            if self._snapshot is ordered:
                return self._commit([])
            ordered_quantities = {item.product_id: item.quantity for item in ordered.items}
            items = []
            for item in self._snapshot.items:
                remaining = item.quantity - ordered_quantities.get(item.product_id, 0)
                if remaining >= 1:
                    items.append(CartItem(product=item.product, quantity=remaining))
            return self._commit(items)

    # ==================== INTERNALS ====================

    def _reject(self, reason: str, detail: str) -> CartResult:
        logger.warning(f"Rejected cart operation ({reason}): {detail}")
        return CartResult(ok=False, snapshot=self._snapshot, reason=reason)

    def _commit(self, items: list[CartItem]) -> CartResult:
        """Swap in the new collection and persist it. Caller holds the lock."""
        self._snapshot = CartSnapshot.from_items(items)
        try:
            self._persistence.save(list(self._snapshot.items))
        except Exception as e:
            # The in-memory cart stays authoritative for this session
            logger.error(f"Failed to persist cart ({describe_lines_for_logging(items)}): {e}", exc_info=True)
        return CartResult(ok=True, snapshot=self._snapshot)
