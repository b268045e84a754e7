# shopcore/repos/customer_repo.py
from sqlalchemy import update
from sqlalchemy.orm import Session

from shopcore.data.models.customer import CustomerModel


class CustomerRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_customer(self, owner_id: str) -> CustomerModel | None:
        return self.db.get(CustomerModel, owner_id)

    def get_or_create(self, owner_id: str) -> CustomerModel:
        customer = self.get_customer(owner_id)
        if customer:
            return customer

        customer = CustomerModel(id=owner_id, addresses=[], payment_methods=[], version=1)
        self.db.add(customer)
        self.db.commit()
        self.db.refresh(customer)
        return customer

    def save_collection(self, owner_id: str, field: str, items: list[dict], old_version: int) -> int:
        # Optimistic locking - zapis calej listy tylko gdy nikt jej w miedzyczasie nie zmienil
        stmt = (
            update(CustomerModel)
            .where(CustomerModel.id == owner_id, CustomerModel.version == old_version)
            .values({field: items, "version": old_version + 1})
        )
        return self.db.execute(stmt).rowcount

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
