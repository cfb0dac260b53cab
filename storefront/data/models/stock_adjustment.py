from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from storefront.data.database import Base


class StockAdjustmentModel(Base):
    """
    Dziennik zmian stanu magazynu (tylko append).
    Kazde wywolanie InventoryService.adjust zostawia tu jeden wiersz.
    """

    __tablename__ = "stock_adjustments"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, nullable=False, index=True)
    color_name = Column(String(50), nullable=True)

    delta = Column(Integer, nullable=False)
    old_stock = Column(Integer, nullable=False)
    new_stock = Column(Integer, nullable=False)

    order_id = Column(Integer, nullable=True, index=True)
    reason = Column(String(20), nullable=False)  # order, compensation, cancellation, admin
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
