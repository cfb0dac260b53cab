# storefront/tasks/inventory_audit.py
from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.services.inventory_service import InventoryService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.inventory_audit.audit_stock_task")
def audit_stock_task():
    """
    Okresowy przeglad: stan zagregowany vs suma stanow wariantow.
    Nic nie poprawia, tylko raportuje - korekty robi admin przez stock-adjustments.
    """
    logger.info("Inventory audit task started")

    db = SessionLocal()
    try:
        discrepancies = InventoryService(db).find_discrepancies()
    finally:
        db.close()

    logger.info(f"Found {len(discrepancies)} products with variant stock discrepancies")

    for d in discrepancies:
        logger.warning(
            f"Stock discrepancy: product {d['product_id']} '{d['name']}' "
            f"aggregate={d['stock']} variants={d['variant_stock_total']} diff={d['difference']}"
        )

    return {"discrepancies": len(discrepancies)}
