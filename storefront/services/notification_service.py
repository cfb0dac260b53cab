# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Serwis do wysylania powiadomien o zamowieniach.
    Uzywa Celery do asynchronicznego przetwarzania.
    """

    @staticmethod
    def send_order_notification(user_id: int, order_id: int, event: str = "placed"):
        """
        Powiadomienie o zmianie zamowienia (placed, cancelled).
        """
        send_order_notification_task.delay(user_id, order_id, event)


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int, order_id: int, event: str = "placed"):
    """
    Celery task - tu bylby email/SMS, na razie tylko loguje.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} {event}")

    return {"user_id": user_id, "order_id": order_id, "event": event, "status": "sent"}
