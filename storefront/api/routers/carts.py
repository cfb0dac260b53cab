# storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.errors import ProductNotFoundError
from storefront.domain.schemas import CartItemIn, CartOut, CartQuantityIn
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/carts", tags=["carts"])


@router.get("/me", response_model=CartOut)
def get_cart(user_id: int = Query(..., gt=0), db: Session = Depends(get_db)):
    return CartService(db).get_cart(user_id)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: CartItemIn,
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        return svc.add_item(
            user_id=user_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
            color=payload.color.model_dump(),
        )
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/items/{product_id}", response_model=CartOut)
def update_item(
    product_id: int,
    payload: CartQuantityIn,
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        return svc.update_item_quantity(user_id, product_id, payload.quantity, payload.color)
    except RuntimeError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: int,
    user_id: int = Query(..., gt=0),
    color: str | None = Query(None),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        return svc.remove_item(user_id, product_id, color)
    except RuntimeError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/me", response_model=CartOut)
def clear_cart(user_id: int = Query(..., gt=0), db: Session = Depends(get_db)):
    try:
        return CartService(db).clear_cart(user_id)
    except RuntimeError as e:
        raise HTTPException(status_code=409, detail=str(e))
