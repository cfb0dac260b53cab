# storefront/services/compensation_service.py
from typing import Any, Dict, Iterable, List

from sqlalchemy.exc import SQLAlchemyError

from storefront.domain.errors import StorefrontError
from storefront.services.inventory_service import InventoryService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CompensationService:
    """
    Oddaje towar na magazyn dla pozycji zamowienia (+quantity dla kazdej).
    Symetrycznie dla wszystkich podanych pozycji, nie sprawdza czy zdjecie sie udalo.
    Bledy tylko loguje - wynik per pozycja.
    """

    def __init__(self, inventory: InventoryService):
        self.inventory = inventory

    def restore(
        self,
        items: Iterable,  # OrderItemModel albo StockLine
        order_id: int | None,
        reason: str = "cancellation",
    ) -> List[Dict[str, Any]]:
        outcomes = []
        for item in items:
            try:
                res = self.inventory.adjust(
                    product_id=item.product_id,
                    delta=item.quantity,
                    color_name=item.variant_name,
                    order_id=order_id,
                    reason=reason,
                )
                outcomes.append(
                    {
                        "product_id": item.product_id,
                        "quantity": item.quantity,
                        "color_name": res["color_name"],
                        "status": "restored",
                        "old_stock": res["old_stock"],
                        "new_stock": res["new_stock"],
                    }
                )
            except (StorefrontError, SQLAlchemyError) as e:
                logger.error(
                    f"Stock restore failed: order={order_id} product={item.product_id} "
                    f"delta=+{item.quantity}: {e}"
                )
                outcomes.append(
                    {
                        "product_id": item.product_id,
                        "quantity": item.quantity,
                        "color_name": item.variant_name,
                        "status": "failed",
                        "error": type(e).__name__,
                    }
                )
        return outcomes
