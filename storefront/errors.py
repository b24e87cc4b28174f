"""
Common Error Constants

Centralized error messages and cart reason codes, plus the few exceptions
the checkout layer raises.
"""

# Cart reason codes (CartResult.reason)
REASON_INVALID_QUANTITY = "invalid_quantity"
REASON_INVALID_PRODUCT = "invalid_product"

# Product errors
ERROR_PRODUCT_NOT_FOUND = "Product not found"
ERROR_CATALOG_UNAVAILABLE = "Catalog unavailable"

# Order errors
ERROR_CHECKOUT_INVALID = "Checkout form is invalid"

# Generic errors
ERROR_INTERNAL = "Internal server error"


class CheckoutValidationError(ValueError):
    """Raised when an order is submitted with an invalid form or an empty cart."""

    def __init__(self, errors: dict[str, str], message: str = ERROR_CHECKOUT_INVALID):
        super().__init__(message)
        self.errors = errors


class OrderSubmissionError(RuntimeError):
    """Raised when the backend rejects or fails to store an order."""
