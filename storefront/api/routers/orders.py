# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from storefront.api.deps import get_order_service
from storefront.api.errors import pending_confirmation, to_http
from storefront.domain.errors import PartialStockUpdateError, StorefrontError
from storefront.domain.schemas import CancelIn, CancellationOut, OrderCreate, OrderOut, PlacementOut
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/", response_model=PlacementOut, status_code=201)
def create_order(
    payload: OrderCreate,
    response: Response,
    svc: OrderService = Depends(get_order_service),
):
    """
    Sklada zamowienie z jawnej listy pozycji.
    Stan magazynu schodzi po zapisie zamowienia, powiadomienie idzie asynchronicznie.
    """
    try:
        result = svc.place_order(
            user_id=payload.user_id,
            items=payload.items,
            shipping_address=payload.shipping_address,
            total_amount=payload.total_amount,
            payment_method=payload.payment_method,
            payment_confirmed=payload.payment_confirmed,
        )
    except PartialStockUpdateError as e:
        response.status_code = 202
        return pending_confirmation(e)
    except StorefrontError as e:
        raise to_http(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {**result, "message": "Zamowienie zlozone"}


@router.get("/", response_model=List[OrderOut])
def list_orders(
    user_id: int = Query(..., gt=0),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_orders(user_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user_id: int = Query(...),
    svc: OrderService = Depends(get_order_service),
):
    try:
        return svc.get_order(order_id, user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except StorefrontError as e:
        raise to_http(e)


@router.post("/{order_id}/cancel", response_model=CancellationOut)
def cancel_order(
    order_id: int,
    payload: CancelIn | None = None,
    user_id: int = Query(...),
    svc: OrderService = Depends(get_order_service),
):
    """Anulowanie przez klienta - tylko wlasne i jeszcze niewyslane zamowienia."""
    try:
        return svc.cancel_order(
            order_id,
            cancelled_by="customer",
            user_id=user_id,
            reason=payload.reason if payload else None,
        )
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except StorefrontError as e:
        raise to_http(e)
