# storefront/api/deps.py
from fastapi import Depends
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.services.cart_reconciler import CartReconciler
from storefront.services.cart_sync_service import CartSyncService
from storefront.services.checkout_service import CheckoutService
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_lock_service() -> LockService:
    return LockService()


def get_cart_sync_service() -> CartSyncService:
    return CartSyncService()


def get_order_service(
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
) -> OrderService:
    return OrderService(db, notification_service=notifications)


def get_checkout_service(
    db: Session = Depends(get_db),
    order_service: OrderService = Depends(get_order_service),
    lock_service: LockService = Depends(get_lock_service),
    cart_sync: CartSyncService = Depends(get_cart_sync_service),
) -> CheckoutService:
    return CheckoutService(
        db=db,
        order_service=order_service,
        reconciler=CartReconciler(schedule_sync=cart_sync.schedule_sync),
        lock_service=lock_service,
    )
