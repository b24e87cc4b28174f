"""Multi-step checkout: shipping -> payment -> review."""
from storefront.cart.service import CartManager

from .form import (
    PAYMENT_STEP,
    REVIEW_STEP,
    SHIPPING_STEP,
    CheckoutForm,
    normalize_field,
    validate_step,
)


class CheckoutSession:
    """
    Tracks the current step, the form and its errors.

    Moving forward is gated on the current step validating; the cart must
    not be empty.
    """

    def __init__(self, cart: CartManager, lang: str = "ar", form: CheckoutForm | None = None):
        self.cart = cart
        self.lang = lang
        self.form = form or CheckoutForm()
        self.step = SHIPPING_STEP
        self.errors: dict[str, str] = {}

    def update(self, field: str, value: str) -> None:
        """Set a form field (normalized) and clear its error."""
        if field not in CheckoutForm.model_fields:
            raise KeyError(field)
        self.form = self.form.model_copy(update={field: normalize_field(field, value)})
        self.errors.pop(field, None)

    def next_step(self) -> bool:
        """Advance if the current step validates. Returns whether the step changed."""
        if self.cart.snapshot().is_empty or self.step >= REVIEW_STEP:
            return False
        self.errors = validate_step(self.step, self.form, self.lang)
        if self.errors:
            return False
        self.step += 1
        return True

    def prev_step(self) -> None:
        if self.step > SHIPPING_STEP:
            self.step -= 1

    @property
    def can_submit(self) -> bool:
        return self.step == REVIEW_STEP and not self.cart.snapshot().is_empty

    @property
    def step_name(self) -> str:
        return {SHIPPING_STEP: "shipping", PAYMENT_STEP: "payment", REVIEW_STEP: "review"}[self.step]
