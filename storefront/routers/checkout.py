"""
Checkout Router

Step validation, the priced summary and order placement.
"""
from fastapi import APIRouter, Depends, HTTPException

from storefront.cart import CartManager
from storefront.checkout import CheckoutService
from storefront.checkout.form import REVIEW_STEP, SHIPPING_STEP, payment_method_label, validate_step
from storefront.errors import CheckoutValidationError, OrderSubmissionError
from storefront.i18n import get_text

from .deps import get_cart_manager, get_db, get_lang
from .models import CheckoutSummaryRequest, PlaceOrderRequest, ValidateStepRequest


router = APIRouter(prefix="/checkout", tags=["checkout"])


def get_checkout_service(
    cart: CartManager = Depends(get_cart_manager),
    db=Depends(get_db),
) -> CheckoutService:
    return CheckoutService(cart, db)


@router.post("/validate")
async def validate_checkout_step(request: ValidateStepRequest, lang: str = Depends(get_lang)):
    """Errors blocking the given step ({} when it may advance)."""
    if not SHIPPING_STEP <= request.step <= REVIEW_STEP:
        raise HTTPException(status_code=400, detail=f"step must be between {SHIPPING_STEP} and {REVIEW_STEP}")
    errors = validate_step(request.step, request.form, lang)
    return {"step": request.step, "valid": not errors, "errors": errors}


@router.post("/summary")
async def checkout_summary(
    request: CheckoutSummaryRequest,
    service: CheckoutService = Depends(get_checkout_service),
):
    """Order summary with shipping, promo discount and tax."""
    return service.quote(request.promo_code).to_dict()


@router.post("")
async def place_order(
    request: PlaceOrderRequest,
    service: CheckoutService = Depends(get_checkout_service),
    lang: str = Depends(get_lang),
):
    """Submit the order; its lines leave the cart once it is stored."""
    try:
        placed = await service.place_order(request.form, request.promo_code, lang)
    except CheckoutValidationError as e:
        raise HTTPException(status_code=400, detail={"message": str(e), "errors": e.errors})
    except OrderSubmissionError:
        raise HTTPException(status_code=502, detail=get_text("checkout.order_failed", lang))

    return {
        **placed.to_dict(),
        "payment_method_label": payment_method_label(request.form.payment_method, lang),
        "message": get_text("checkout.order_placed", lang, order_number=placed.order_number),
    }
