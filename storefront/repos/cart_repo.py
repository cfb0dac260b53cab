# storefront/repos/cart_repo.py
from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.user_id == user_id)
        ).scalar_one_or_none()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def get_cart_items(self, cart_id: int) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.id)
            ).scalars().all()
        )

    def get_cart_item(self, cart_id: int, product_id: int, color_name: str) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
                func.lower(CartItemModel.color_name) == color_name.lower(),
            )
        ).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_cart_items(self, cart_id: int, product_id: int, color_name: str | None = None) -> int:
        stmt = delete(CartItemModel).where(
            CartItemModel.cart_id == cart_id,
            CartItemModel.product_id == product_id,
        )
        if color_name:
            stmt = stmt.where(func.lower(CartItemModel.color_name) == color_name.lower())
        return self.db.execute(stmt.execution_options(synchronize_session=False)).rowcount

    def clear_items(self, cart_id: int) -> int:
        return self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .execution_options(synchronize_session=False)
        ).rowcount

    # Optimistic locking
    # update carts set version = :new where id = :id and version = :old
    def update_cart_version(self, cart_id: int, old_version: int, new_data: dict) -> int:
        return self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.version == old_version)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        ).rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
