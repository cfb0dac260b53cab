# storefront/api/routers/admin.py
"""
Endpointy admina: produkty, korekty magazynowe i zamowienia.
Autoryzacja admina jest poza tym serwisem (gateway).
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_order_service
from storefront.api.errors import to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import (
    CancelIn,
    CancellationOut,
    OrderOut,
    OrderStatus,
    ProductCreate,
    ProductOut,
    ProductUpdate,
    StatusUpdateIn,
    StockAdjustmentIn,
    StockAdjustmentOut,
    StockAdjustmentResult,
    StockDiscrepancyOut,
)
from storefront.services.order_service import OrderService
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/admin", tags=["admin"])


# ---------- produkty i magazyn ----------

@router.post("/products/", response_model=ProductOut, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    try:
        return ProductService(db).create_product(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/products/{product_id}", response_model=ProductOut)
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    try:
        return ProductService(db).update_product(product_id, payload)
    except StorefrontError as e:
        raise to_http(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/products/{product_id}/stock-adjustments", response_model=StockAdjustmentResult)
def adjust_stock(product_id: int, payload: StockAdjustmentIn, db: Session = Depends(get_db)):
    """Korekta stanu o delta (dostawa, inwentaryzacja). Stan nigdy nie schodzi ponizej zera."""
    try:
        return ProductService(db).adjust_stock(product_id, payload.delta, color_name=payload.color)
    except StorefrontError as e:
        raise to_http(e)


@router.get("/products/{product_id}/stock-adjustments", response_model=List[StockAdjustmentOut])
def list_adjustments(product_id: int, db: Session = Depends(get_db)):
    try:
        return ProductService(db).list_adjustments(product_id)
    except StorefrontError as e:
        raise to_http(e)


@router.get("/inventory/discrepancies", response_model=List[StockDiscrepancyOut])
def list_discrepancies(db: Session = Depends(get_db)):
    return ProductService(db).find_discrepancies()


# ---------- zamowienia ----------

@router.get("/orders/", response_model=List[OrderOut])
def list_orders(
    status: OrderStatus | None = Query(None),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_all_orders(status)


@router.put("/orders/{order_id}/status", response_model=OrderOut)
def update_status(
    order_id: int,
    payload: StatusUpdateIn,
    svc: OrderService = Depends(get_order_service),
):
    try:
        return svc.update_status(order_id, payload.status, reason=payload.reason, force=payload.force_cancel)
    except StorefrontError as e:
        raise to_http(e)


@router.post("/orders/{order_id}/cancel", response_model=CancellationOut)
def cancel_order(
    order_id: int,
    payload: CancelIn | None = None,
    svc: OrderService = Depends(get_order_service),
):
    try:
        return svc.cancel_order(
            order_id,
            cancelled_by="admin",
            reason=payload.reason if payload else None,
            force=payload.force_cancel if payload else False,
        )
    except StorefrontError as e:
        raise to_http(e)
