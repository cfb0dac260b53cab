# storefront/services/inventory_service.py
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.stock_adjustment import StockAdjustmentModel
from storefront.domain.errors import NegativeStockError, ProductNotFoundError
from storefront.repos.product_repo import ProductRepo
from storefront.repos.stock_adjustment_repo import StockAdjustmentRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ADJUSTMENT_REASONS = ("order", "compensation", "cancellation", "admin")


class InventoryService:
    """
    Jedyne miejsce zmieniajace products.stock i product_color_variants.stock.

    -zmiana o delta ze znakiem (ujemna zdejmuje, dodatnia oddaje towar)
    -warunkowy UPDATE w jednym kroku, bez read-modify-write
    -stan zagregowany i wariantu zmieniane niezaleznie, nie przeliczane z siebie
    -kazda zmiana dopisuje wiersz do dziennika stock_adjustments
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepo(db)
        self.ledger = StockAdjustmentRepo(db)

    def adjust(
        self,
        product_id: int,
        delta: int,
        color_name: str | None = None,
        order_id: int | None = None,
        reason: str = "order",
    ) -> Dict[str, Any]:
        if delta == 0:
            raise ValueError("Zmiana stanu nie moze byc zerowa")
        if reason not in ADJUSTMENT_REASONS:
            raise ValueError(f"Nieznany powod zmiany stanu: {reason}")

        try:
            new_stock = self.repo.apply_stock_delta(product_id, delta)

            if new_stock is None:
                #0 rows affected - albo produktu nie ma, albo zeszlibysmy ponizej zera
                self.repo.rollback()
                product = self.repo.get_product(product_id)
                if product is None:
                    raise ProductNotFoundError(product_id)
                logger.warning(
                    f"Stock adjustment rejected: product={product_id} delta={delta} "
                    f"current={product.stock} order={order_id}"
                )
                raise NegativeStockError(product_id, available=product.stock, delta=delta)

            variant_old = variant_new = None
            matched_name = None
            if color_name:
                variant = self.repo.get_variant(product_id, color_name)
                if variant is None:
                    logger.info(
                        f"No color variant '{color_name}' for product {product_id}, "
                        f"adjusting aggregate stock only"
                    )
                else:
                    matched_name = variant.name
                    variant_new = self.repo.apply_variant_delta(variant.id, delta)
                    if variant_new is None:
                        available = variant.stock
                        #cofamy tez zmiane stanu zagregowanego z tej transakcji
                        self.repo.rollback()
                        logger.warning(
                            f"Variant stock adjustment rejected: product={product_id} "
                            f"color={variant.name} delta={delta} current={available} order={order_id}"
                        )
                        raise NegativeStockError(
                            product_id, available=available, delta=delta, color_name=variant.name
                        )
                    variant_old = variant_new - delta

            old_stock = new_stock - delta
            self.ledger.append(
                StockAdjustmentModel(
                    product_id=product_id,
                    color_name=matched_name,
                    delta=delta,
                    old_stock=old_stock,
                    new_stock=new_stock,
                    order_id=order_id,
                    reason=reason,
                )
            )
            self.repo.commit()

        except SQLAlchemyError as e:
            logger.error(
                f"Stock adjustment failed: product={product_id} delta={delta} order={order_id}: {e}"
            )
            self.repo.rollback()
            raise

        logger.info(
            f"Stock adjusted: product={product_id} {old_stock} -> {new_stock} (delta {delta}, "
            f"color={matched_name}, reason={reason}, order={order_id})"
        )

        return {
            "product_id": product_id,
            "old_stock": old_stock,
            "new_stock": new_stock,
            "delta": delta,
            "color_name": matched_name,
            "variant_old_stock": variant_old,
            "variant_new_stock": variant_new,
        }

    def list_adjustments(self, product_id: int) -> List[StockAdjustmentModel]:
        if self.repo.get_product(product_id) is None:
            raise ProductNotFoundError(product_id)
        return self.ledger.list_for_product(product_id)

    def find_discrepancies(self) -> List[Dict[str, Any]]:
        """Produkty z wariantami, dla ktorych stan zagregowany != suma stanow wariantow."""
        result = []
        for product in self.repo.list_products():
            if not product.color_variants:
                continue
            total = product.variant_stock_total
            if total != product.stock:
                result.append(
                    {
                        "product_id": product.id,
                        "name": product.name,
                        "stock": product.stock,
                        "variant_stock_total": total,
                        "difference": product.stock - total,
                    }
                )
        return result
