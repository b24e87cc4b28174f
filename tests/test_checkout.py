"""
Tests for checkout: form normalization, validation, pricing, steps and order placement
"""

import re
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import httpx
import pytest

from storefront.cart import CartItem, CartSnapshot, ProductSnapshot
from storefront.checkout import (
    CheckoutForm,
    CheckoutService,
    CheckoutSession,
    PaymentMethod,
    calculate_summary,
    normalize_phone,
    validate_step,
)
from storefront.checkout.form import (
    backend_payment_method,
    format_card_expiry,
    format_card_number,
    payment_method_label,
    validate_all,
)
from storefront.checkout.pricing import calculate_discount, calculate_shipping
from storefront.checkout.service import build_order_item_rows, build_order_row, generate_order_number
from storefront.errors import CheckoutValidationError, OrderSubmissionError


def _snapshot(price: str, quantity: int = 1) -> CartSnapshot:
    product = ProductSnapshot(product_id="PX", price=Decimal(price), title_ar="منتج")
    return CartSnapshot.from_items([CartItem(product, quantity)])


class TestNormalization:

    @pytest.mark.parametrize("raw, expected", [
        ("4111111111111111", "4111 1111 1111 1111"),
        ("4111-1111-1111-1111-9999", "4111 1111 1111 1111"),
        ("41111", "4111 1"),
        ("", ""),
    ])
    def test_card_number(self, raw, expected):
        assert format_card_number(raw) == expected

    @pytest.mark.parametrize("raw, expected", [
        ("1226", "12/26"),
        ("12/2", "12/2"),
        ("1", "1"),
        ("12265", "12/26"),
    ])
    def test_card_expiry(self, raw, expected):
        assert format_card_expiry(raw) == expected

    @pytest.mark.parametrize("raw", ["01012345678", "010 1234 5678", "201012345678", "+201012345678", "1012345678"])
    def test_phone(self, raw):
        assert normalize_phone(raw) == "+201012345678"

    def test_foreign_phone_unchanged(self):
        assert normalize_phone("+44 7700 900123") == "+44 7700 900123"


class TestValidation:

    def test_valid_form_passes(self, valid_form_data):
        assert validate_all(CheckoutForm(**valid_form_data)) == {}

    def test_empty_shipping_step(self):
        errors = validate_step(1, CheckoutForm())

        assert set(errors) == {"first_name", "last_name", "phone", "governorate", "city", "address"}
        assert errors["first_name"] == "الاسم الكامل مطلوب"
        assert errors["phone"] == "رقم الهاتف مطلوب"

    def test_missing_last_name_flags_both(self, valid_form_data):
        form = CheckoutForm(**{**valid_form_data, "last_name": " "})
        errors = validate_step(1, form, "en")
        assert errors == {"first_name": "Full name is required", "last_name": "Full name is required"}

    def test_email_optional_but_checked(self, valid_form_data):
        assert "email" not in validate_step(1, CheckoutForm(**{**valid_form_data, "email": ""}))
        errors = validate_step(1, CheckoutForm(**{**valid_form_data, "email": "not-an-email"}), "en")
        assert errors == {"email": "Invalid email address"}

    @pytest.mark.parametrize("phone", ["0101234567", "+201312345678", "12345", "+2010123456789"])
    def test_invalid_phone(self, valid_form_data, phone):
        errors = validate_step(1, CheckoutForm(**{**valid_form_data, "phone": phone}))
        assert errors == {"phone": "رقم الهاتف غير صحيح"}

    @pytest.mark.parametrize("phone", ["01012345678", "+201112345678", "01212345678", "1512345678"])
    def test_valid_phone(self, valid_form_data, phone):
        assert validate_step(1, CheckoutForm(**{**valid_form_data, "phone": phone})) == {}

    def test_card_fields_required_for_card(self, valid_form_data):
        form = CheckoutForm(**{**valid_form_data, "card_number": "", "card_expiry": "", "card_cvc": "", "card_name": ""})
        assert set(validate_step(2, form)) == {"card_number", "card_expiry", "card_cvc", "card_name"}

    def test_card_format(self, valid_form_data):
        form = CheckoutForm(**{
            **valid_form_data,
            "card_number": "4111111111111111",
            "card_expiry": "13/27",
            "card_cvc": "12",
        })
        errors = validate_step(2, form, "en")
        assert errors == {
            "card_number": "Invalid card number (must be 16 digits)",
            "card_expiry": "Invalid expiry date (MM/YY)",
            "card_cvc": "Invalid security code",
        }

    @pytest.mark.parametrize("method", ["cash_on_delivery", "wallet", "bank_transfer"])
    def test_card_fields_ignored_for_other_methods(self, method):
        assert validate_step(2, CheckoutForm(payment_method=method)) == {}

    def test_review_step_has_no_errors(self):
        assert validate_step(3, CheckoutForm()) == {}

    def test_payment_labels_and_backend_values(self):
        assert payment_method_label(PaymentMethod.WALLET, "en") == "Mobile wallet"
        assert payment_method_label(PaymentMethod.CASH_ON_DELIVERY) == "الدفع عند الاستلام"
        assert backend_payment_method(PaymentMethod.CREDIT_CARD) == "paymob_card"
        assert backend_payment_method(None) == "cash_on_delivery"


class TestPricing:

    def test_empty_cart_is_all_zero(self):
        summary = calculate_summary(CartSnapshot())
        assert summary.total == 0
        assert summary.shipping == 0

    def test_shipping_threshold(self):
        assert calculate_shipping(Decimal("999.99")) == Decimal("50")
        assert calculate_shipping(Decimal("1000")) == 0

    def test_welcome10(self):
        summary = calculate_summary(_snapshot("200"), "welcome10")

        assert summary.discount == Decimal("20.00")
        assert summary.promo_code == "WELCOME10"
        assert summary.total == Decimal("230.00")

    def test_save50_capped_at_subtotal(self):
        assert calculate_discount(Decimal("30"), "SAVE50") == Decimal("30.00")
        summary = calculate_summary(_snapshot("30"), "SAVE50")
        assert summary.total == Decimal("50.00")

    def test_unknown_code_ignored(self):
        summary = calculate_summary(_snapshot("200"), "FREESTUFF")
        assert summary.discount == 0
        assert summary.promo_code is None

    def test_tax_on_discounted_subtotal(self):
        summary = calculate_summary(_snapshot("100", 2), "WELCOME10", include_tax=True)

        assert summary.tax == Decimal("25.20")
        assert summary.total == Decimal("255.20")

    def test_to_dict_uses_floats(self):
        data = calculate_summary(_snapshot("100", 2), include_tax=True).to_dict()
        assert data == {
            "subtotal": 200.0,
            "shipping": 50.0,
            "discount": 0.0,
            "tax": 28.0,
            "total": 278.0,
            "promo_code": None,
        }


class TestCheckoutSession:

    def test_empty_cart_blocks_progress(self, cart, valid_form_data):
        session = CheckoutSession(cart, form=CheckoutForm(**valid_form_data))
        assert session.next_step() is False
        assert session.step == 1

    def test_walks_through_steps(self, cart, product_p1, valid_form_data):
        cart.add_item(product_p1, 1)
        session = CheckoutSession(cart, form=CheckoutForm(**valid_form_data))

        assert session.step_name == "shipping"
        assert session.next_step()
        assert session.step_name == "payment"
        assert session.next_step()
        assert session.step_name == "review"
        assert session.can_submit
        assert session.next_step() is False

        session.prev_step()
        assert session.step_name == "payment"

    def test_invalid_step_keeps_errors(self, cart, product_p1):
        cart.add_item(product_p1, 1)
        session = CheckoutSession(cart, lang="en")

        assert session.next_step() is False
        assert session.errors["phone"] == "Phone number is required"

        session.update("phone", "010 1234 5678")
        assert "phone" not in session.errors
        assert session.form.phone == "+201012345678"

    def test_update_normalizes_card_fields(self, cart):
        session = CheckoutSession(cart)
        session.update("card_number", "4111111111111111")
        session.update("card_expiry", "1227")

        assert session.form.card_number == "4111 1111 1111 1111"
        assert session.form.card_expiry == "12/27"

    def test_unknown_field(self, cart):
        with pytest.raises(KeyError):
            CheckoutSession(cart).update("cvv2", "1")

    def test_prev_step_stops_at_shipping(self, cart):
        session = CheckoutSession(cart)
        session.prev_step()
        assert session.step == 1


class TestOrderRows:

    def test_order_number_format(self):
        number = generate_order_number(datetime(2026, 3, 5, tzinfo=timezone.utc))
        assert re.fullmatch(r"ALM-20260305-[0-9A-F]{6}", number)

    def test_order_row_has_no_card_data(self, valid_form_data):
        form = CheckoutForm(**{**valid_form_data, "phone2": "01112345678", "notes": "بعد العصر"})
        row = build_order_row(form, calculate_summary(_snapshot("100")), "ALM-1")

        assert row["customer_name"] == "أحمد علي"
        assert row["payment_method"] == "paymob_card"
        assert row["notes"] == "بعد العصر\nphone2: 01112345678"
        assert not any(key.startswith("card") for key in row)
        assert "4111" not in str(row)

    def test_item_rows(self, product_p1):
        snapshot = CartSnapshot.from_items([CartItem(product_p1, 3)])
        rows = build_order_item_rows(snapshot, "order-1")

        assert rows == [{
            "order_id": "order-1",
            "product_id": "P1",
            "product_title": "طابعة إيصالات",
            "quantity": 3,
            "unit_price": 100.0,
            "total_price": 300.0,
            "discount_applied": 0,
            "product_snapshot": product_p1.to_dict(),
        }]


class TestCheckoutService:

    @pytest.mark.asyncio
    async def test_empty_cart_rejected(self, cart, valid_form_data):
        with pytest.raises(CheckoutValidationError) as exc_info:
            await CheckoutService(cart).place_order(CheckoutForm(**valid_form_data))
        assert exc_info.value.errors == {"cart": "لا توجد منتجات في عربة التسوق"}

    @pytest.mark.asyncio
    async def test_invalid_form_keeps_cart(self, cart, product_p1):
        cart.add_item(product_p1, 1)

        with pytest.raises(CheckoutValidationError) as exc_info:
            await CheckoutService(cart).place_order(CheckoutForm())

        assert "phone" in exc_info.value.errors
        assert cart.total_items == 1

    @pytest.mark.asyncio
    async def test_simulated_order_clears_cart(self, cart, product_p1, valid_form_data):
        cart.add_item(product_p1, 2)

        placed = await CheckoutService(cart).place_order(CheckoutForm(**valid_form_data), "WELCOME10")

        assert placed.simulated
        assert placed.summary.total == Decimal("255.20")
        assert placed.order["total_amount"] == 255.2
        assert placed.items[0]["quantity"] == 2
        assert cart.snapshot().is_empty

    @pytest.mark.asyncio
    async def test_stored_order(self, cart, product_p1, valid_form_data, mock_database):
        cart.add_item(product_p1, 1)

        placed = await CheckoutService(cart, mock_database).place_order(CheckoutForm(**valid_form_data))

        assert not placed.simulated
        assert placed.order["order_id"] == "order-123"
        mock_database.create_order.assert_awaited_once()
        item_rows = mock_database.create_order_items.await_args.args[0]
        assert item_rows[0]["order_id"] == "order-123"
        assert cart.snapshot().is_empty

    @pytest.mark.asyncio
    async def test_backend_failure_keeps_cart(self, cart, product_p1, valid_form_data, mock_database):
        cart.add_item(product_p1, 2)
        mock_database.create_order = AsyncMock(side_effect=ValueError("Failed to create order"))

        with pytest.raises(OrderSubmissionError):
            await CheckoutService(cart, mock_database).place_order(CheckoutForm(**valid_form_data))

        mock_database.create_order.assert_awaited_once()
        assert cart.get_item_quantity("P1") == 2

    @pytest.mark.asyncio
    async def test_transport_errors_retried(self, cart, product_p1, valid_form_data, mock_database):
        cart.add_item(product_p1, 1)
        stored = {"order_id": "order-9"}
        mock_database.create_order = AsyncMock(side_effect=[httpx.ConnectError("reset"), stored])

        placed = await CheckoutService(cart, mock_database).place_order(CheckoutForm(**valid_form_data))

        assert mock_database.create_order.await_count == 2
        assert placed.order == stored

    @pytest.mark.asyncio
    async def test_read_timeout_not_retried(self, cart, product_p1, valid_form_data, mock_database):
        cart.add_item(product_p1, 1)
        mock_database.create_order = AsyncMock(side_effect=httpx.ReadTimeout("no response"))

        with pytest.raises(OrderSubmissionError):
            await CheckoutService(cart, mock_database).place_order(CheckoutForm(**valid_form_data))

        mock_database.create_order.assert_awaited_once()
        assert cart.get_item_quantity("P1") == 1

    @pytest.mark.asyncio
    async def test_items_failure_discards_order(self, cart, product_p1, valid_form_data, mock_database):
        cart.add_item(product_p1, 2)
        mock_database.create_order_items = AsyncMock(side_effect=ValueError("items insert failed"))

        with pytest.raises(OrderSubmissionError):
            await CheckoutService(cart, mock_database).place_order(CheckoutForm(**valid_form_data))

        mock_database.create_order_items.assert_awaited_once()
        mock_database.delete_order.assert_awaited_once_with("order-123")
        assert cart.get_item_quantity("P1") == 2

    @pytest.mark.asyncio
    async def test_failed_discard_still_reports_submission_error(
        self, cart, product_p1, valid_form_data, mock_database
    ):
        cart.add_item(product_p1, 1)
        mock_database.create_order_items = AsyncMock(side_effect=ValueError("items insert failed"))
        mock_database.delete_order = AsyncMock(side_effect=ValueError("delete failed"))

        with pytest.raises(OrderSubmissionError):
            await CheckoutService(cart, mock_database).place_order(CheckoutForm(**valid_form_data))

        mock_database.delete_order.assert_awaited_once_with("order-123")
        assert cart.get_item_quantity("P1") == 1

    @pytest.mark.asyncio
    async def test_lines_added_during_submit_survive(
        self, cart, product_p1, product_p2, valid_form_data, mock_database
    ):
        cart.add_item(product_p1, 2)

        async def create_order(row):
            cart.add_item(product_p2, 1)
            return {**row, "order_id": "order-123"}

        mock_database.create_order = AsyncMock(side_effect=create_order)

        placed = await CheckoutService(cart, mock_database).place_order(CheckoutForm(**valid_form_data))

        assert [item["product_id"] for item in placed.items] == ["P1"]
        assert [item.product_id for item in cart.items] == ["P2"]
        assert cart.get_item_quantity("P2") == 1

    def test_quote_includes_tax(self, cart, product_p1):
        cart.add_item(product_p1, 1)
        assert CheckoutService(cart).quote().tax == Decimal("14.00")
