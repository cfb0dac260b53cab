# storefront/repos/stock_adjustment_repo.py
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.data.models.stock_adjustment import StockAdjustmentModel


class StockAdjustmentRepo:
    """Tylko dopisywanie i odczyt - wpisow w dzienniku sie nie poprawia."""

    def __init__(self, db: Session):
        self.db = db

    def append(self, entry: StockAdjustmentModel) -> StockAdjustmentModel:
        #bez commita, wpis idzie w tej samej transakcji co zmiana stanu
        self.db.add(entry)
        return entry

    def list_for_product(self, product_id: int) -> list[StockAdjustmentModel]:
        return list(
            self.db.execute(
                select(StockAdjustmentModel)
                .where(StockAdjustmentModel.product_id == product_id)
                .order_by(StockAdjustmentModel.id)
            ).scalars().all()
        )

    def net_deltas_for_order(self, order_id: int) -> dict[int, int]:
        """Suma zmian per produkt dla zamowienia: ujemna = towar nadal zdjety z magazynu."""
        rows = self.db.execute(
            select(StockAdjustmentModel.product_id, func.sum(StockAdjustmentModel.delta))
            .where(StockAdjustmentModel.order_id == order_id)
            .group_by(StockAdjustmentModel.product_id)
        ).all()
        return {product_id: int(total) for product_id, total in rows}
