# storefront/repos/product_repo.py
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.order import OrderItemModel
from storefront.data.models.product import ProductModel, ColorVariantModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def list_products(self) -> list[ProductModel]:
        return list(self.db.execute(select(ProductModel).order_by(ProductModel.id)).scalars().all())

    def get_variant(self, product_id: int, color_name: str) -> ColorVariantModel | None:
        return self.db.execute(
            select(ColorVariantModel).where(
                ColorVariantModel.product_id == product_id,
                func.lower(ColorVariantModel.name) == color_name.lower(),
            )
        ).scalar_one_or_none()

    def create_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    # jedna instrukcja UPDATE z warunkiem - baza sama serializuje rownolegle zamowienia
    # UPDATE products SET stock = stock + :delta WHERE id = :id AND stock + :delta >= 0 RETURNING stock
    def apply_stock_delta(self, product_id: int, delta: int) -> int | None:
        stmt = (
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.stock + delta >= 0)
            .values(stock=ProductModel.stock + delta, updated_at=datetime.now(timezone.utc))
            .returning(ProductModel.stock)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def apply_variant_delta(self, variant_id: int, delta: int) -> int | None:
        stmt = (
            update(ColorVariantModel)
            .where(ColorVariantModel.id == variant_id, ColorVariantModel.stock + delta >= 0)
            .values(stock=ColorVariantModel.stock + delta)
            .returning(ColorVariantModel.stock)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    # zamowienia i koszyki trzymaja nazwe wariantu, zwrot stanu przy anulowaniu szuka po niej
    def rename_variant_references(self, product_id: int, old_name: str, new_name: str):
        for model, column in (
            (OrderItemModel, OrderItemModel.variant_name),
            (CartItemModel, CartItemModel.color_name),
        ):
            self.db.execute(
                update(model)
                .where(model.product_id == product_id, func.lower(column) == old_name.lower())
                .values({column: new_name})
                .execution_options(synchronize_session=False)
            )

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
