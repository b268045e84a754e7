# shopcore/data/seed.py
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from shopcore.data.database import SessionLocal, init_db
from shopcore.data.models import ProductModel, VariantModel
from shopcore.utils.logging import get_logger

logger = get_logger(__name__)


def seed():
    init_db()
    db = SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            logger.info("Products already present, skipping seed")
            return

        now = datetime.now(timezone.utc)

        tshirt = ProductModel(
            name="Basic T-Shirt",
            slug="basic-t-shirt",
            sku="TSHIRT",
            price=Decimal("50.00"),
            inventory=100,
            images=["/media/tshirt.jpg"],
            variants=[
                VariantModel(name="S", sku="TSHIRT-S", options={"size": "S"}, is_default=True),
                VariantModel(name="M", sku="TSHIRT-M", options={"size": "M"}),
                VariantModel(
                    name="XL",
                    sku="TSHIRT-XL",
                    price=Decimal("55.00"),
                    inventory=10,
                    options={"size": "XL"},
                ),
            ],
        )
        mug = ProductModel(
            name="Coffee Mug",
            slug="coffee-mug",
            sku="MUG",
            price=Decimal("20.00"),
            discount_price=Decimal("15.00"),
            discount_start=now - timedelta(days=1),
            discount_end=now + timedelta(days=7),
            inventory=25,
            images=["/media/mug.jpg"],
        )

        db.add_all([tshirt, mug])
        db.commit()
        logger.info("Seeded demo products")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
