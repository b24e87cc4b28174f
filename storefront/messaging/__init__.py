from .whatsapp import build_cart_message, build_product_message, whatsapp_url

__all__ = ["build_cart_message", "build_product_message", "whatsapp_url"]
