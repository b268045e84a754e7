from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, Numeric, String
from sqlalchemy.orm import relationship

from shopcore.data.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    sku = Column(String, nullable=False, unique=True)

    price = Column(Numeric(12, 2), nullable=False)
    discount_price = Column(Numeric(12, 2), nullable=True)
    discount_start = Column(DateTime(timezone=True), nullable=True)
    discount_end = Column(DateTime(timezone=True), nullable=True)

    inventory = Column(Integer, nullable=False, default=0)
    sold_count = Column(Integer, nullable=False, default=0)
    images = Column(JSON, nullable=False, default=list)

    #optimistic locking dla zmian wariantow produktu
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    variants = relationship(
        "VariantModel",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="VariantModel.id",
    )


class VariantModel(Base):
    __tablename__ = "product_variants"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    sku = Column(String, nullable=False, unique=True)

    price = Column(Numeric(12, 2), nullable=True)  # nadpisuje cene produktu
    inventory = Column(Integer, nullable=True)  # NULL - wariant korzysta ze stanu produktu
    options = Column(JSON, nullable=False, default=dict)
    images = Column(JSON, nullable=False, default=list)
    is_default = Column(Boolean, nullable=False, default=False)

    product = relationship("ProductModel", back_populates="variants")
