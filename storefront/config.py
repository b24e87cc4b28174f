"""
Storefront configuration.

Values come from the environment (a local .env file is loaded when present).
"""

import os
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

_env_path = Path(__file__).parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)

# Supabase (managed backend for products, orders, settings)
SUPABASE_URL = os.environ.get("SUPABASE_URL", "").strip()
SUPABASE_ANON_KEY = os.environ.get("SUPABASE_ANON_KEY", "").strip()

# Cart persistence
CART_STORAGE_BACKEND = os.environ.get("CART_STORAGE_BACKEND", "file").lower()  # file | memory | redis
CART_STORAGE_DIR = os.environ.get("CART_STORAGE_DIR", "data/storage")
CART_STORAGE_KEY = os.environ.get("CART_STORAGE_KEY", "alamer-cart")

# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

# Store contact
WHATSAPP_PHONE = os.environ.get("WHATSAPP_PHONE", "+201026043165")

# Pricing rules
SHIPPING_COST = Decimal(os.environ.get("SHIPPING_COST", "50"))
FREE_SHIPPING_THRESHOLD = Decimal(os.environ.get("FREE_SHIPPING_THRESHOLD", "1000"))
TAX_RATE = Decimal(os.environ.get("TAX_RATE", "0.14"))

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.environ.get("LOG_FORMAT", "simple" if os.environ.get("VERCEL") == "1" else "detailed").lower()

# Display
DEFAULT_CURRENCY_SYMBOL = os.environ.get("DEFAULT_CURRENCY_SYMBOL", "ج.م")
DEFAULT_LANGUAGE = os.environ.get("DEFAULT_LANGUAGE", "ar")


def is_supabase_configured() -> bool:
    """True when both Supabase URL and anon key are set."""
    return bool(SUPABASE_URL and SUPABASE_ANON_KEY)
