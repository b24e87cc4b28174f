"""
Storefront API Pydantic Models

Request bodies shared by the cart and checkout endpoints.
"""
from typing import Optional

from pydantic import BaseModel

from storefront.checkout.form import CheckoutForm


# ==================== CART MODELS ====================

class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = 1


class UpdateCartItemRequest(BaseModel):
    quantity: int  # 0 or less removes the line


# ==================== CHECKOUT MODELS ====================

class ValidateStepRequest(BaseModel):
    step: int
    form: CheckoutForm


class CheckoutSummaryRequest(BaseModel):
    promo_code: Optional[str] = None


class PlaceOrderRequest(BaseModel):
    form: CheckoutForm
    promo_code: Optional[str] = None
