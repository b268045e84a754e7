# shopcore/services/variant_service.py
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from shopcore.data.models.product import ProductModel, VariantModel
from shopcore.domain import default_set
from shopcore.domain.errors import ConcurrencyConflict, ConstraintViolation, InternalError, NotFound
from shopcore.domain.schemas import VariantFlag, VariantIn
from shopcore.repos.product_repo import ProductRepo
from shopcore.utils.logging import get_logger

logger = get_logger(__name__)


class VariantService:
    """
    Administracja wariantami produktu. Flaga is_default wariantow zmienia sie
    wylacznie przez default_set, a kazda zmiana podbija wersje produktu.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepo(db)

    def list_variants(self, product_id: int) -> list[VariantModel]:
        self._product(product_id)
        return self.repo.get_variants(product_id)

    def create_variant(self, product_id: int, data: VariantIn) -> VariantModel:
        product = self._product(product_id)

        if self.repo.get_variant_by_sku(data.sku):
            raise ConstraintViolation(f"SKU {data.sku} already exists")

        fields = data.model_dump(exclude={"is_default"})
        variant = VariantModel(product_id=product.id, is_default=False, **fields)

        try:
            self.repo.add_variant(variant)
        except IntegrityError as e:
            self.db.rollback()
            raise ConstraintViolation(f"SKU {data.sku} already exists") from e

        flags = [self._flag(v) for v in self.repo.get_variants(product.id) if v.id != variant.id]
        updated = default_set.add_with_default_policy(flags, VariantFlag(id=variant.id, is_default=data.is_default))
        self._save(product, updated)

        logger.info(f"Nowy wariant {variant.sku} produktu {product.id}")
        return variant

    def update_variant(self, variant_id: int, data: VariantIn) -> VariantModel:
        variant = self._variant(variant_id)
        product = self._product(variant.product_id)

        if data.sku != variant.sku and self.repo.get_variant_by_sku(data.sku):
            raise ConstraintViolation(f"SKU {data.sku} already exists")

        for key, value in data.model_dump(exclude={"is_default"}).items():
            setattr(variant, key, value)

        flags = [self._flag(v) for v in self.repo.get_variants(product.id)]
        updated = default_set.update_with_default_policy(flags, variant.id, {"is_default": data.is_default})
        self._save(product, updated)
        return variant

    def delete_variant(self, variant_id: int) -> list[VariantModel]:
        variant = self._variant(variant_id)
        product = self._product(variant.product_id)

        flags = [self._flag(v) for v in self.repo.get_variants(product.id)]
        updated = default_set.remove_with_default_policy(flags, variant.id)

        try:
            self.repo.delete_variant(variant)
        except IntegrityError as e:
            #wariant nadal w koszykach lub zamowieniach
            self.db.rollback()
            raise ConstraintViolation("Variant is still referenced and cannot be deleted") from e
        self._save(product, updated)

        logger.info(f"Usunieto wariant {variant_id} produktu {product.id}")
        return self.repo.get_variants(product.id)

    def set_default_variant(self, variant_id: int) -> list[VariantModel]:
        variant = self._variant(variant_id)
        product = self._product(variant.product_id)

        flags = [self._flag(v) for v in self.repo.get_variants(product.id)]
        self._save(product, default_set.set_default(flags, variant.id))
        return self.repo.get_variants(product.id)

    def _save(self, product: ProductModel, flags: list[VariantFlag]) -> None:
        wanted = {f.id: f.is_default for f in flags}
        for v in self.repo.get_variants(product.id):
            if v.id in wanted:
                v.is_default = wanted[v.id]

        try:
            rowcount = self.repo.bump_product_version(product.id, product.version)
            if rowcount == 0:
                self.db.rollback()
                raise ConcurrencyConflict()
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConstraintViolation() from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Blad zapisu wariantow produktu {product.id}")
            raise InternalError() from e

    def _product(self, product_id: int) -> ProductModel:
        product = self.repo.get_product(product_id)
        if not product:
            raise NotFound("Product not found")
        return product

    def _variant(self, variant_id: int) -> VariantModel:
        variant = self.repo.get_variant(variant_id)
        if not variant:
            raise NotFound("Variant not found")
        return variant

    @staticmethod
    def _flag(variant: VariantModel) -> VariantFlag:
        return VariantFlag(id=variant.id, is_default=bool(variant.is_default))
