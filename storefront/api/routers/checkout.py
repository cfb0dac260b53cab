# storefront/api/routers/checkout.py
from fastapi import APIRouter, Depends, HTTPException, Response

from storefront.api.deps import get_checkout_service
from storefront.api.errors import pending_confirmation, to_http
from storefront.domain.errors import PartialStockUpdateError, StorefrontError
from storefront.domain.schemas import CheckoutIn, CheckoutOut
from storefront.services.checkout_service import CheckoutService

router = APIRouter(tags=["checkout"])


@router.post("/checkout", response_model=CheckoutOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    response: Response,
    svc: CheckoutService = Depends(get_checkout_service),
):
    """
    Checkout z koszykiem lokalnym klienta.
    Gdy koszyk lokalny jest pusty, pozycje biora sie z koszyka w backendzie.
    """
    try:
        result = svc.checkout(
            user_id=payload.user_id,
            local_cart=payload.local_cart,
            shipping_address=payload.shipping_address,
            total_amount=payload.total_amount,
            payment_method=payload.payment_method,
            payment_confirmed=payload.payment_confirmed,
        )
    except PartialStockUpdateError as e:
        response.status_code = 202
        return {**pending_confirmation(e), "cart_source": "local" if payload.local_cart else "backend"}
    except StorefrontError as e:
        raise to_http(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {**result, "message": "Zamowienie zlozone"}
