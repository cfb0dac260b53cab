# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    INVENTORY_AUDIT_INTERVAL_SECONDS,
)

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# WAZNE: explicite importuj taski, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "storefront.tasks.inventory_audit",
    "storefront.services.notification_service",
    "storefront.services.cart_sync_service",
)

celery_app.conf.beat_schedule = {
    "audit-variant-stock": {
        "task": "storefront.tasks.inventory_audit.audit_stock_task",
        "schedule": INVENTORY_AUDIT_INTERVAL_SECONDS,
    },
}

celery_app.conf.timezone = "UTC"
