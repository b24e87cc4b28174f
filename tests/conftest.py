"""Pytest configuration and fixtures"""
import os
from decimal import Decimal
from unittest.mock import AsyncMock, Mock

import pytest

# Set test environment variables before storefront.config is imported
os.environ.setdefault("CART_STORAGE_BACKEND", "memory")
os.environ.setdefault("CART_STORAGE_KEY", "alamer-cart")
os.environ.setdefault("WHATSAPP_PHONE", "+201026043165")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from storefront.cart import CartManager, CartPersistence, MemoryCartStorage, ProductSnapshot  # noqa: E402
from storefront.services.models import Category, Product  # noqa: E402


@pytest.fixture
def memory_storage():
    """Empty in-memory storage slot"""
    return MemoryCartStorage()


@pytest.fixture
def cart(memory_storage):
    """Fresh cart persisting into memory_storage"""
    return CartManager(CartPersistence(memory_storage, "alamer-cart"))


@pytest.fixture
def product_p1():
    """Receipt printer, 100 EGP"""
    return ProductSnapshot(
        product_id="P1",
        price=Decimal("100"),
        title_ar="طابعة إيصالات",
        title_en="Receipt Printer",
        stock=10,
    )


@pytest.fixture
def product_p2():
    """Barcode scanner, 50 EGP"""
    return ProductSnapshot(
        product_id="P2",
        price=Decimal("50"),
        title_ar="قارئ باركود",
        title_en="Barcode Scanner",
        stock=3,
    )


@pytest.fixture
def sample_product():
    """Catalog row as Supabase returns it"""
    return Product(
        product_id="P1",
        title_ar="طابعة إيصالات",
        title_en="Receipt Printer",
        price=100.0,
        stock=10,
        category_name="طابعات",
        thumbnail_url="https://cdn.example.com/p1.jpg",
        discount_percentage=0,
        is_active=True,
    )


@pytest.fixture
def valid_form_data():
    """Checkout form that passes every step"""
    return {
        "first_name": "أحمد",
        "last_name": "علي",
        "email": "ahmed@example.com",
        "phone": "+201012345678",
        "governorate": "القاهرة",
        "city": "مدينة نصر",
        "address": "15 شارع عباس العقاد",
        "payment_method": "credit_card",
        "card_number": "4111 1111 1111 1111",
        "card_expiry": "12/27",
        "card_cvc": "123",
        "card_name": "AHMED ALI",
    }


@pytest.fixture
def mock_database(sample_product):
    """Database facade with async methods mocked"""
    db = Mock()
    db.get_product_by_id = AsyncMock(return_value=sample_product)
    db.get_products = AsyncMock(return_value=[sample_product])
    db.search_products = AsyncMock(return_value=[sample_product])
    db.get_products_by_category = AsyncMock(return_value=[sample_product])
    db.get_featured_products = AsyncMock(return_value=[sample_product])
    db.get_categories = AsyncMock(return_value=[
        Category(category_id="c1", name_ar="طابعات", name_en="Printers"),
    ])
    db.create_order = AsyncMock(side_effect=lambda row: {**row, "order_id": "order-123"})
    db.create_order_items = AsyncMock(side_effect=lambda rows: rows)
    db.delete_order = AsyncMock(return_value=None)
    return db


@pytest.fixture
def mock_supabase_client():
    """Mock async Supabase client (query builder chain ending in awaitable execute)"""
    client = Mock()

    table_mock = Mock()
    for method in ("select", "insert", "update", "delete", "eq", "order", "limit", "single"):
        getattr(table_mock, method).return_value = table_mock
    table_mock.execute = AsyncMock(return_value=Mock(data=[]))

    client.table.return_value = table_mock
    return client
