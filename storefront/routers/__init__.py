"""HTTP routers for the storefront API."""
from .cart import router as cart_router
from .checkout import router as checkout_router
from .products import router as products_router

__all__ = ["cart_router", "checkout_router", "products_router"]
