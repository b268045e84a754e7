from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import relationship

from shopcore.data.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class CartLineModel(Base):
    __tablename__ = "cart_lines"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    variant_id = Column(Integer, ForeignKey("product_variants.id", ondelete="CASCADE"), nullable=True)

    quantity = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    product = relationship("ProductModel")
    variant = relationship("VariantModel")

    #NULL != NULL w unique, dlatego coalesce - linia bez wariantu tez jest unikalna
    __table_args__ = (
        Index(
            "ux_cart_owner_product_variant",
            "owner_id",
            "product_id",
            func.coalesce(variant_id, 0),
            unique=True,
        ),
    )
