# shopcore/repos/product_repo.py
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from shopcore.data.models.product import ProductModel, VariantModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_variant(self, variant_id: int) -> VariantModel | None:
        return self.db.get(VariantModel, variant_id)

    def get_variants(self, product_id: int) -> list[VariantModel]:
        stmt = (
            select(VariantModel)
            .where(VariantModel.product_id == product_id)
            .order_by(VariantModel.id)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_variant_by_sku(self, sku: str) -> VariantModel | None:
        stmt = select(VariantModel).where(VariantModel.sku == sku)
        return self.db.execute(stmt).scalar_one_or_none()

    def add_variant(self, variant: VariantModel) -> VariantModel:
        self.db.add(variant)
        self.db.flush()
        return variant

    def delete_variant(self, variant: VariantModel) -> None:
        self.db.delete(variant)
        self.db.flush()

    def bump_product_version(self, product_id: int, old_version: int) -> int:
        # Optimistic locking: update products set version = v + 1 where id = .. and version = v
        stmt = (
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.version == old_version)
            .values(version=old_version + 1)
        )
        return self.db.execute(stmt).rowcount

    def decrement_product_stock(self, product_id: int, quantity: int) -> int:
        #warunkowy update - stan nigdy nie spada ponizej zera
        stmt = (
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.inventory >= quantity)
            .values(
                inventory=ProductModel.inventory - quantity,
                sold_count=ProductModel.sold_count + quantity,
            )
        )
        return self.db.execute(stmt).rowcount

    def decrement_variant_stock(self, variant_id: int, quantity: int) -> int:
        stmt = (
            update(VariantModel)
            .where(VariantModel.id == variant_id, VariantModel.inventory >= quantity)
            .values(inventory=VariantModel.inventory - quantity)
        )
        return self.db.execute(stmt).rowcount

    def zero_product_stock(self, product_id: int, sold: int) -> None:
        stmt = (
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(inventory=0, sold_count=ProductModel.sold_count + sold)
        )
        self.db.execute(stmt)

    def zero_variant_stock(self, variant_id: int) -> None:
        self.db.execute(update(VariantModel).where(VariantModel.id == variant_id).values(inventory=0))

    def add_sold(self, product_id: int, quantity: int) -> None:
        stmt = (
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(sold_count=ProductModel.sold_count + quantity)
        )
        self.db.execute(stmt)
