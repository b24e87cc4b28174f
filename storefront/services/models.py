"""Database Models - Pydantic models for the Supabase tables the storefront reads."""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from storefront.services.money import to_decimal as _to_decimal


class Category(BaseModel):
    """Catalog category."""
    model_config = ConfigDict(extra="ignore")

    category_id: str
    name_ar: str
    name_en: Optional[str] = None
    description_ar: Optional[str] = None
    image_url: Optional[str] = None
    display_order: int = 0
    is_active: bool = True


class Product(BaseModel):
    """Product row from the `products` table."""
    model_config = ConfigDict(extra="ignore")

    product_id: str
    title_ar: str
    title_en: Optional[str] = None
    short_desc_ar: Optional[str] = None
    short_desc_en: Optional[str] = None
    price: Decimal
    original_price: Optional[Decimal] = None
    stock: int = 0
    min_stock_alert: int = 0
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    image_urls: list[str] = []
    thumbnail_url: Optional[str] = None
    whatsapp_message_text: Optional[str] = None
    discount_percentage: Decimal = Decimal("0")
    sku: Optional[str] = None
    is_featured: bool = False
    is_active: bool = True
    created_at: Optional[datetime] = None

    @field_validator("price", "discount_percentage", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        return _to_decimal(v)

    @field_validator("original_price", mode="before")
    @classmethod
    def convert_optional_decimal(cls, v):
        return None if v is None else _to_decimal(v)

    @field_validator("image_urls", mode="before")
    @classmethod
    def default_image_urls(cls, v):
        return v or []

    def title(self, lang: str = "ar") -> str:
        """Localized title; Arabic is always present."""
        if lang == "en" and self.title_en:
            return self.title_en
        return self.title_ar


class OrderItem(BaseModel):
    """Row in `order_items`."""
    model_config = ConfigDict(extra="ignore")

    order_item_id: Optional[str] = None
    order_id: Optional[str] = None
    product_id: Optional[str] = None
    product_title: str
    product_sku: Optional[str] = None
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    discount_applied: Decimal = Decimal("0")
    product_snapshot: Optional[dict] = None

    @field_validator("unit_price", "total_price", "discount_applied", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        return _to_decimal(v)


class Order(BaseModel):
    """Row in `orders`."""
    model_config = ConfigDict(extra="ignore")

    order_id: Optional[str] = None
    order_number: str
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    governorate: str
    city: str
    address: str
    payment_method: str
    payment_status: str = "pending"
    order_status: str = "pending"
    subtotal: Decimal
    shipping_cost: Decimal
    discount_amount: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    total_amount: Decimal
    currency: str = "EGP"
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator(
        "subtotal", "shipping_cost", "discount_amount", "tax_amount", "total_amount", mode="before"
    )
    @classmethod
    def convert_to_decimal(cls, v):
        return _to_decimal(v)


class SiteSetting(BaseModel):
    """Row in `site_settings`."""
    model_config = ConfigDict(extra="ignore")

    setting_key: str
    setting_value: Optional[str] = None
    setting_type: str = "text"
    is_public: bool = True
