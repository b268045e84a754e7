from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, JSON, Numeric, String, text

from shopcore.data.database import Base


class PaymentModel(Base):
    """Jeden wiersz na kazda probe weryfikacji callbacku bramki."""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    gateway_order_id = Column(String, nullable=False)
    gateway_payment_id = Column(String, nullable=False)
    signature = Column(String, nullable=False)

    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    method = Column(String, nullable=False)
    status = Column(String, nullable=False)  # completed, failed
    payment_data = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    #para (order, payment) moze byc zweryfikowana z sukcesem tylko raz
    __table_args__ = (
        Index(
            "ux_payment_gateway_pair_completed",
            "gateway_order_id",
            "gateway_payment_id",
            unique=True,
            postgresql_where=text("status = 'completed'"),
            sqlite_where=text("status = 'completed'"),
        ),
    )
