"""Checkout form: field normalization and per-step validation."""
import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from storefront.i18n import get_text

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^(\+20|0)?1[0125][0-9]{8}$")
CARD_NUMBER_RE = re.compile(r"^\d{4}\s\d{4}\s\d{4}\s\d{4}$")
CARD_EXPIRY_RE = re.compile(r"^(0[1-9]|1[0-2])/([0-9]{2})$")
CARD_CVC_RE = re.compile(r"^\d{3,4}$")

SHIPPING_STEP = 1
PAYMENT_STEP = 2
REVIEW_STEP = 3


class PaymentMethod(str, Enum):
    CASH_ON_DELIVERY = "cash_on_delivery"
    CREDIT_CARD = "credit_card"
    WALLET = "wallet"
    BANK_TRANSFER = "bank_transfer"


# Values of the `orders.payment_method` column
BACKEND_PAYMENT_METHODS = {
    PaymentMethod.CASH_ON_DELIVERY: "cash_on_delivery",
    PaymentMethod.CREDIT_CARD: "paymob_card",
    PaymentMethod.WALLET: "paymob_wallet",
    PaymentMethod.BANK_TRANSFER: "bank_transfer",
}


class CheckoutForm(BaseModel):
    """Shipping and payment details entered at checkout."""
    model_config = ConfigDict(extra="ignore")

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    phone2: str = ""
    governorate: str = ""
    city: str = ""
    address: str = ""
    notes: str = ""
    payment_method: PaymentMethod = PaymentMethod.CREDIT_CARD
    card_number: str = ""
    card_expiry: str = ""
    card_cvc: str = ""
    card_name: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name.strip()} {self.last_name.strip()}".strip()


# ==================== NORMALIZATION ====================

def format_card_number(value: str) -> str:
    """Keep up to 16 digits, grouped in fours: "4111111111111111" -> "4111 1111 1111 1111"."""
    digits = re.sub(r"\D", "", value)[:16]
    return " ".join(digits[i:i + 4] for i in range(0, len(digits), 4))


def format_card_expiry(value: str) -> str:
    """MM/YY from typed digits, e.g. 1226 -> 12/26. Fewer than two digits stay as typed."""
    digits = re.sub(r"\D", "", value)
    if len(digits) >= 2:
        return f"{digits[:2]}/{digits[2:4]}"
    return digits


def normalize_phone(value: str) -> str:
    """
    Normalize an Egyptian mobile number to international form.

    "01012345678" -> "+201012345678", "201012345678" -> "+201012345678",
    "1012345678" -> "+201012345678". Anything else is returned unchanged.
    """
    digits = re.sub(r"\D", "", value)
    if digits.startswith("20"):
        return "+" + digits
    if digits.startswith("0"):
        return "+20" + digits[1:]
    if digits.startswith("1"):
        return "+20" + digits
    return value


FIELD_NORMALIZERS = {
    "card_number": format_card_number,
    "card_expiry": format_card_expiry,
    "phone": normalize_phone,
}


def normalize_field(field: str, value: str) -> str:
    normalizer = FIELD_NORMALIZERS.get(field)
    return normalizer(value) if normalizer else value


# ==================== VALIDATION ====================

def validate_shipping(form: CheckoutForm, lang: str = "ar") -> dict[str, str]:
    """Step 1: contact and delivery address."""
    errors: dict[str, str] = {}

    if not form.first_name.strip() or not form.last_name.strip():
        message = get_text("checkout.name_required", lang)
        errors["first_name"] = message
        errors["last_name"] = message

    if form.email.strip() and not EMAIL_RE.match(form.email.strip()):
        errors["email"] = get_text("checkout.email_invalid", lang)

    phone = re.sub(r"\s", "", form.phone)
    if not phone:
        errors["phone"] = get_text("checkout.phone_required", lang)
    elif not PHONE_RE.match(phone):
        errors["phone"] = get_text("checkout.phone_invalid", lang)

    for field in ("governorate", "city", "address"):
        if not getattr(form, field).strip():
            errors[field] = get_text(f"checkout.{field}_required", lang)

    return errors


def validate_payment(form: CheckoutForm, lang: str = "ar") -> dict[str, str]:
    """Step 2: card fields are format-checked only when paying by card."""
    if form.payment_method != PaymentMethod.CREDIT_CARD:
        return {}

    errors: dict[str, str] = {}

    if not form.card_number.strip():
        errors["card_number"] = get_text("checkout.card_number_required", lang)
    elif not CARD_NUMBER_RE.match(form.card_number):
        errors["card_number"] = get_text("checkout.card_number_invalid", lang)

    if not form.card_expiry.strip():
        errors["card_expiry"] = get_text("checkout.card_expiry_required", lang)
    elif not CARD_EXPIRY_RE.match(form.card_expiry):
        errors["card_expiry"] = get_text("checkout.card_expiry_invalid", lang)

    if not form.card_cvc.strip():
        errors["card_cvc"] = get_text("checkout.card_cvc_required", lang)
    elif not CARD_CVC_RE.match(form.card_cvc):
        errors["card_cvc"] = get_text("checkout.card_cvc_invalid", lang)

    if not form.card_name.strip():
        errors["card_name"] = get_text("checkout.card_name_required", lang)

    return errors


def validate_step(step: int, form: CheckoutForm, lang: str = "ar") -> dict[str, str]:
    """Errors blocking `step`; the review step has none."""
    if step == SHIPPING_STEP:
        return validate_shipping(form, lang)
    if step == PAYMENT_STEP:
        return validate_payment(form, lang)
    return {}


def validate_all(form: CheckoutForm, lang: str = "ar") -> dict[str, str]:
    return {**validate_shipping(form, lang), **validate_payment(form, lang)}


def payment_method_label(method: PaymentMethod, lang: str = "ar") -> str:
    return get_text(f"payment_methods.{method.value}", lang, default=method.value)


def backend_payment_method(method: Optional[PaymentMethod]) -> str:
    return BACKEND_PAYMENT_METHODS.get(method or PaymentMethod.CASH_ON_DELIVERY, "cash_on_delivery")
