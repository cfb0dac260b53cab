from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from storefront.data.database import Base

ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")

# pending - zamowienie zapisane, stan magazynu jeszcze nie ruszony
# applied - wszystkie pozycje zdjete z magazynu
# rolled_back - przegrany wyscig o towar, zmiany cofniete, zamowienie anulowane
# needs_reconciliation - czesciowa aktualizacja, do recznego sprawdzenia przez admina
# restored / restore_failed - wynik zwrotu towaru po anulowaniu
STOCK_STATES = ("pending", "applied", "rolled_back", "needs_reconciliation", "restored", "restore_failed")


def _now():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    status = Column(String, nullable=False, default="pending")
    stock_state = Column(String, nullable=False, default="pending")
    payment_method = Column(String, nullable=False)
    payment_status = Column(String, nullable=False, default="pending")
    total_amount = Column(Numeric(10, 2), nullable=False)
    shipping_address = Column(JSON, nullable=False)

    cancelled_by = Column(String, nullable=True)  # customer, admin, system
    cancellation_reason = Column(String, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )


class OrderItemModel(Base):
    """Kopia produktu z chwili zamowienia, nie referencja do zywego rekordu."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, nullable=False)

    name = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    color_name = Column(String(50), nullable=False)
    color_code = Column(String(20), nullable=False)
    # nazwa wariantu ktory faktycznie zdejmujemy z magazynu, None gdy tylko stan zagregowany
    variant_name = Column(String(50), nullable=True)

    order = relationship("OrderModel", back_populates="items")
