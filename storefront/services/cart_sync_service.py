# storefront/services/cart_sync_service.py
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError

from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.services.cart_reconciler import SYNC_FAILED_WARNING
from storefront.services.cart_service import CartService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartSyncService:
    """
    Wypchniecie koszyka lokalnego do koszyka w backendzie.
    Fire-and-forget przez Celery - checkout na to nie czeka.
    """

    @staticmethod
    def schedule_sync(user_id: int, items: List[Dict[str, Any]]):
        requested_at = datetime.now(timezone.utc).isoformat()
        sync_backend_cart_task.delay(user_id, items, requested_at)


@celery_app.task(name="storefront.services.cart_sync_service.sync_backend_cart_task")
def sync_backend_cart_task(user_id: int, items: List[Dict[str, Any]], requested_at: str | None = None):
    logger.info(f"Cart sync task started for user {user_id} ({len(items)} items)")

    since = datetime.fromisoformat(requested_at) if requested_at else None

    db = SessionLocal()
    try:
        pushed = CartService(db).sync_items(user_id, items, requested_at=since)
    except (SQLAlchemyError, ValueError) as e:
        # synchronizacja jest best-effort, koszyk lokalny klienta dalej jest zrodlem prawdy
        db.rollback()
        logger.warning(f"{SYNC_FAILED_WARNING}: user={user_id} items={len(items)} error={e}")
        pushed = 0
    finally:
        db.close()

    return {"user_id": user_id, "pushed": pushed}
