# shopcore/repos/payment_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from shopcore.data.models.payment import PaymentModel


class PaymentRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_completed(self, gateway_order_id: str, gateway_payment_id: str) -> PaymentModel | None:
        stmt = select(PaymentModel).where(
            PaymentModel.gateway_order_id == gateway_order_id,
            PaymentModel.gateway_payment_id == gateway_payment_id,
            PaymentModel.status == "completed",
        )
        return self.db.execute(stmt).scalars().first()

    def add_payment(self, payment: PaymentModel) -> PaymentModel:
        self.db.add(payment)
        self.db.flush()
        return payment
