# storefront/repos/order_repo.py
from datetime import datetime

from sqlalchemy import exists, select
from sqlalchemy.orm import Session
from storefront.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def list_orders_for_user(self, user_id: int) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.user_id == user_id)
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars().all()
        )

    def list_orders(self, status: str | None = None) -> list[OrderModel]:
        stmt = select(OrderModel).order_by(OrderModel.id.desc())
        if status:
            stmt = stmt.where(OrderModel.status == status)
        return list(self.db.execute(stmt).scalars().all())

    def has_orders_since(self, user_id: int, since: datetime) -> bool:
        return self.db.execute(
            select(
                exists().where(
                    OrderModel.user_id == user_id,
                    OrderModel.created_at >= since,
                    OrderModel.status != "cancelled",
                )
            )
        ).scalar()

    def save(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order
