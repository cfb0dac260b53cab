# storefront/services/checkout_service.py
from decimal import Decimal
from typing import Any, Dict, Sequence

import redis
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.domain.errors import DuplicateCheckoutError
from storefront.domain.schemas import CartLineItem
from storefront.services.cart_reconciler import CartReconciler
from storefront.services.cart_service import CartService
from storefront.services.lock_service import LockService
from storefront.services.order_service import OrderService
from storefront.utils.logging import get_logger
from storefront.utils.settings import CHECKOUT_LOCK_TTL_SECONDS

logger = get_logger(__name__)


class CheckoutService:
    """
    Use Case: checkout z koszykiem lokalnym klienta.

    1. Blokada checkoutu klienta w redisie (bez podwojnego wyslania)
    2. Odczyt koszyka z backendu (blad odczytu nie przerywa checkoutu)
    3. CartReconciler wybiera zrodlo pozycji
    4. OrderService sklada zamowienie
    """

    def __init__(
        self,
        db: Session,
        order_service: OrderService,
        reconciler: CartReconciler,
        lock_service: LockService | None = None,
    ):
        self.db = db
        self.carts = CartService(db)
        self.orders = order_service
        self.reconciler = reconciler
        self.lock_service = lock_service

    def checkout(
        self,
        user_id: int,
        local_cart: Sequence[CartLineItem],
        shipping_address: Any,
        total_amount: Decimal,
        payment_method: str = "cod",
        payment_confirmed: bool = False,
    ) -> Dict[str, Any]:
        token = self._acquire_lock(user_id)

        try:
            try:
                backend_result = self.carts.get_cart_lines(user_id)
            except SQLAlchemyError as e:
                self.db.rollback()
                backend_result = e

            resolved = self.reconciler.resolve(user_id, local_cart, backend_result)

            result = self.orders.place_order(
                user_id=user_id,
                items=resolved.items,
                shipping_address=shipping_address,
                total_amount=total_amount,
                payment_method=payment_method,
                payment_confirmed=payment_confirmed,
            )
            result["cart_source"] = resolved.source
            result["sync_scheduled"] = resolved.sync_scheduled
            return result
        finally:
            if token is not None:
                self._release_lock(user_id, token)

    def _acquire_lock(self, user_id: int) -> str | None:
        if self.lock_service is None:
            return None
        try:
            token = self.lock_service.acquire_checkout_lock(user_id, ttl=CHECKOUT_LOCK_TTL_SECONDS)
        except redis.RedisError as e:
            # bez redisa skladamy bez blokady, przed sprzedaza ponad stan chroni warunkowy UPDATE
            logger.warning(f"Checkout lock unavailable for user {user_id}, continuing without it: {e}")
            return None
        if token is None:
            logger.warning(f"Checkout already in progress for user {user_id}")
            raise DuplicateCheckoutError(user_id)
        return token

    def _release_lock(self, user_id: int, token: str):
        try:
            self.lock_service.release_checkout_lock(user_id, token)
        except redis.RedisError as e:
            # lock i tak wygasnie po TTL
            logger.warning(f"Failed to release checkout lock for user {user_id}: {e}")
