# storefront/data/models/product.py
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from storefront.data.database import Base


def _now():
    return datetime.now(timezone.utc)


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    # stan zagregowany - zmieniany tylko przez InventoryService.adjust
    stock = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    color_variants = relationship(
        "ColorVariantModel",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ColorVariantModel.id",
    )

    __table_args__ = (CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),)

    def find_variant(self, color_name: str | None = None, color_code: str | None = None):
        """Wariant po nazwie (bez wielkosci liter), a gdy brak - po kodzie koloru."""
        if color_name:
            for variant in self.color_variants:
                if variant.name.lower() == color_name.lower():
                    return variant
        if color_code:
            for variant in self.color_variants:
                if variant.code.lower() == color_code.lower():
                    return variant
        return None

    @property
    def variant_stock_total(self) -> int:
        return sum(v.stock for v in self.color_variants)


class ColorVariantModel(Base):
    __tablename__ = "product_color_variants"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)

    name = Column(String(50), nullable=False)
    code = Column(String(20), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    is_available = Column(Boolean, nullable=False, default=True)

    product = relationship("ProductModel", back_populates="color_variants")

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_variants_stock_non_negative"),
        UniqueConstraint("product_id", "name", name="u_product_variant_name"),
    )
