# shopcore/repos/order_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from shopcore.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_owner_order(self, owner_id: str, order_id: int) -> OrderModel | None:
        stmt = (
            select(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.owner_id == owner_id)
            .options(selectinload(OrderModel.items))
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_owner_orders(self, owner_id: str) -> list[OrderModel]:
        stmt = (
            select(OrderModel)
            .where(OrderModel.owner_id == owner_id)
            .options(selectinload(OrderModel.items))
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def order_number_exists(self, order_number: str) -> bool:
        stmt = select(OrderModel.id).where(OrderModel.order_number == order_number)
        return self.db.execute(stmt).first() is not None

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
