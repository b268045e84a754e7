from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, JSON, String

from shopcore.data.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class CustomerModel(Base):
    """Profil wlasciciela koszyka - id pochodzi od dostawcy tozsamosci."""

    __tablename__ = "customers"

    id = Column(String, primary_key=True)

    #zdenormalizowane kolekcje z flaga is_default
    addresses = Column(JSON, nullable=False, default=list)
    payment_methods = Column(JSON, nullable=False, default=list)

    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
