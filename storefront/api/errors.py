# storefront/api/errors.py
from fastapi import HTTPException

from storefront.domain.errors import (
    DuplicateCheckoutError,
    InsufficientStockError,
    NegativeStockError,
    OrderNotFoundError,
    PartialStockUpdateError,
    ProductNotFoundError,
    StorefrontError,
)

# komunikat dla klienta, gdy zamowienie zapisane ale stan magazynu jeszcze uzgadniamy
ORDER_PENDING_CONFIRMATION = "Zamowienie zostalo przyjete. Potwierdzimy je wkrotce."


def to_http(e: StorefrontError) -> HTTPException:
    if isinstance(e, InsufficientStockError):
        return HTTPException(
            status_code=409,
            detail={
                "message": (
                    f"Niewystarczajacy stan produktu. Dostepne: {e.available}, zamowione: {e.requested}. "
                    f"Zmniejsz ilosc i sprobuj ponownie."
                ),
                "product_id": e.product_id,
                "available": e.available,
                "requested": e.requested,
                "color": e.color_name,
            },
        )
    if isinstance(e, NegativeStockError):
        return HTTPException(
            status_code=409,
            detail={
                "message": str(e),
                "product_id": e.product_id,
                "available": e.available,
                "delta": e.delta,
                "color": e.color_name,
            },
        )
    if isinstance(e, (ProductNotFoundError, OrderNotFoundError)):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, DuplicateCheckoutError):
        return HTTPException(status_code=409, detail=str(e))
    #EmptyOrder, InvalidOrderStatus, OrderAmountMismatch
    return HTTPException(status_code=400, detail=str(e))


def pending_confirmation(e: PartialStockUpdateError) -> dict:
    # klient widzi tylko zamowienie i ogolny komunikat, szczegoly zostaja w logach i u admina
    return {"order": e.order, "adjustments": [], "message": ORDER_PENDING_CONFIRMATION}
