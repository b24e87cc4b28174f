"""Checkout package: form, pricing, step session and order placement."""
from .form import CheckoutForm, PaymentMethod, normalize_phone, validate_step
from .pricing import OrderSummary, calculate_summary
from .service import CheckoutService, PlacedOrder
from .session import CheckoutSession

__all__ = [
    "CheckoutForm",
    "PaymentMethod",
    "normalize_phone",
    "validate_step",
    "OrderSummary",
    "calculate_summary",
    "CheckoutService",
    "PlacedOrder",
    "CheckoutSession",
]
