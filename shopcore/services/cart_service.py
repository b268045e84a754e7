# shopcore/services/cart_service.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from shopcore.data.models.cart_line import CartLineModel
from shopcore.domain.errors import ConstraintViolation, InternalError, InvalidQuantity, NotFound, OutOfStock
from shopcore.domain.pricing import money, resolve_price
from shopcore.repos.cart_repo import CartRepo
from shopcore.repos.product_repo import ProductRepo
from shopcore.utils.logging import get_logger

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CartService:
    """
    Koszyk wlasciciela: commands (add, update, remove, clear) modyfikuja linie,
    query (read) liczy sumy od zera przy kazdym odczycie - bez cache.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.clock = clock

    #query - odczyt
    def read(self, owner_id: str) -> Dict[str, Any]:
        now = self.clock()
        lines = self.repo.get_lines(owner_id)

        items = []
        for line in lines:
            unit_price = resolve_price(line.product, line.variant, now)
            items.append(self._line_to_dict(line, unit_price))

        return {
            "owner_id": owner_id,
            "items": items,
            "subtotal": sum((i["line_total"] for i in items), Decimal("0.00")),
            "total_items": sum(i["quantity"] for i in items),
        }

    def lines(self, owner_id: str) -> list[CartLineModel]:
        return self.repo.get_lines(owner_id)

    #commands
    def add_item(
        self,
        owner_id: str,
        product_id: int,
        variant_id: int | None = None,
        quantity: int = 1,
    ) -> Dict[str, Any]:

        if quantity is None or quantity <= 0:
            raise InvalidQuantity("Quantity must be greater than 0")

        product = self.products.get_product(product_id)
        if not product:
            raise NotFound("Item no longer available")

        variant = None
        if variant_id is not None:
            variant = self.products.get_variant(variant_id)
            if not variant or variant.product_id != product.id:
                raise NotFound("Selected variant is no longer available")

        self._ensure_in_stock(product, variant)

        try:
            self._add_or_increment(owner_id, product_id, variant_id, quantity)
            self.repo.commit()
        except IntegrityError:
            #inny request wstawil te sama linie pierwszy - ponawiamy jako update
            self.repo.rollback()
            logger.info(
                f"Linia ({owner_id}, {product_id}, {variant_id}) juz istnieje, "
                f"ponawiam jako zwiekszenie ilosci"
            )
            existing = self.repo.find_line(owner_id, product_id, variant_id)
            if not existing:
                raise ConstraintViolation("Could not add the item, please try again")
            self.repo.increment_quantity(existing.id, quantity)
            self._commit(owner_id)
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.exception(f"Blad zapisu koszyka {owner_id}")
            raise InternalError() from e

        return self.read(owner_id)

    def update_item(self, owner_id: str, line_id: int, quantity: int) -> Dict[str, Any]:
        if quantity is None or quantity < 1:
            raise InvalidQuantity("Quantity must be at least 1, remove the item instead")

        line = self.repo.get_line(owner_id, line_id)
        if not line:
            raise NotFound("Cart item not found")

        logger.info(f"Zmiana ilosci linii {line_id} z {line.quantity} na {quantity}")
        line.quantity = quantity
        self._commit(owner_id)

        return self.read(owner_id)

    def remove_item(self, owner_id: str, line_id: int) -> Dict[str, Any]:
        line = self.repo.get_line(owner_id, line_id)
        if not line:
            raise NotFound("Cart item not found")

        logger.info(f"Usuwanie linii {line_id} z koszyka {owner_id}")
        self.repo.delete_line(line)
        self._commit(owner_id)

        return self.read(owner_id)

    def clear(self, owner_id: str) -> Dict[str, Any]:
        removed = self.repo.delete_lines(owner_id)
        self._commit(owner_id)
        logger.info(f"Koszyk {owner_id} wyczyszczony ({removed} linii)")
        return self.read(owner_id)

    def _commit(self, owner_id: str) -> None:
        try:
            self.repo.commit()
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.exception(f"Blad zapisu koszyka {owner_id}")
            raise InternalError() from e

    def _add_or_increment(self, owner_id: str, product_id: int, variant_id: int | None, quantity: int) -> None:
        existing = self.repo.find_line(owner_id, product_id, variant_id)

        if existing:
            logger.info(
                f"Produkt {product_id} już jest w koszyku, zwiekszam ilosc "
                f"z {existing.quantity} o {quantity}"
            )
            self.repo.increment_quantity(existing.id, quantity)
            return

        logger.info(f"Dodaje nowy produkt {product_id} (wariant {variant_id}) do koszyka {owner_id}")
        self.repo.add_line(
            CartLineModel(
                owner_id=owner_id,
                product_id=product_id,
                variant_id=variant_id,
                quantity=quantity,
            )
        )

    @staticmethod
    def _ensure_in_stock(product, variant) -> None:
        #wariant bez wlasnego stanu (NULL) korzysta ze stanu produktu
        if variant is not None and variant.inventory is not None:
            if variant.inventory < 1:
                raise OutOfStock("Selected variant is out of stock")
            return
        if product.inventory is None or product.inventory < 1:
            raise OutOfStock("Product is out of stock")

    @staticmethod
    def _line_to_dict(line: CartLineModel, unit_price: Decimal) -> Dict[str, Any]:
        product = line.product
        variant = line.variant
        images = (variant.images if variant and variant.images else None) or product.images or []

        return {
            "line_id": line.id,
            "product_id": line.product_id,
            "variant_id": line.variant_id,
            "name": f"{product.name} ({variant.name})" if variant else product.name,
            "sku": variant.sku if variant else product.sku,
            "image": images[0] if images else None,
            "quantity": line.quantity,
            "unit_price": unit_price,
            "line_total": money(unit_price * line.quantity),
        }
