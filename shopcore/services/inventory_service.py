# shopcore/services/inventory_service.py
from sqlalchemy.orm import Session

from shopcore.data.models.inventory import InventoryTransactionModel
from shopcore.data.models.order import OrderItemModel, OrderModel
from shopcore.domain.errors import InsufficientInventory
from shopcore.repos.product_repo import ProductRepo
from shopcore.utils.logging import get_logger

logger = get_logger(__name__)


class InventoryService:
    """
    Zdejmuje stan magazynu po potwierdzonej platnosci, wg ilosci ze snapshotu
    zamowienia (nigdy z aktualnego koszyka).

    Nie commituje - dziala w transakcji weryfikacji platnosci, ktora pilnuje,
    zeby zamowienie bylo rozliczone dokladnie raz.
    """

    def __init__(self, db: Session):
        self.db = db
        self.products = ProductRepo(db)

    def apply_order(self, order: OrderModel) -> list[InsufficientInventory]:
        warnings = []

        for item in order.items:
            warning = self._apply_item(order, item)
            if warning:
                warnings.append(warning)

        if warnings:
            #platnosc juz pobrana - nie odrzucamy zamowienia, tylko flagujemy
            order.needs_reconciliation = True
            note = "; ".join(
                f"short stock for product {w.product_id}"
                + (f" variant {w.variant_id}" if w.variant_id else "")
                + f": requested {w.requested}, available {w.available}"
                for w in warnings
            )
            order.admin_note = f"{order.admin_note}\n{note}" if order.admin_note else note
            logger.warning(f"Zamowienie {order.order_number} wymaga recznego uzgodnienia: {note}")

        self.db.flush()
        return warnings

    def _apply_item(self, order: OrderModel, item: OrderItemModel) -> InsufficientInventory | None:
        quantity = int(item.quantity)
        product = self.products.get_product(item.product_id)

        if product is None:
            logger.warning(f"Produkt {item.product_id} z zamowienia {order.order_number} juz nie istnieje")
            return InsufficientInventory(item.product_id, item.variant_id, quantity, 0)

        variant = self.products.get_variant(item.variant_id) if item.variant_id else None

        #wariant z wlasnym stanem - zdejmujemy z wariantu, inaczej z produktu
        if variant is not None and variant.inventory is not None:
            moved = self._decrement_variant(variant, quantity)
            self.products.add_sold(product.id, quantity)
        else:
            moved = self._decrement_product(product, quantity)

        self.db.add(
            InventoryTransactionModel(
                product_id=product.id,
                variant_id=variant.id if variant else None,
                quantity=-moved,
                type="sale",
                reference=str(order.id),
                notes=None if moved == quantity else f"requested {quantity}, only {moved} in stock",
            )
        )

        if moved < quantity:
            return InsufficientInventory(product.id, item.variant_id, quantity, moved)
        return None

    def _decrement_product(self, product, quantity: int) -> int:
        if self.products.decrement_product_stock(product.id, quantity):
            return quantity

        self.db.refresh(product, ["inventory"])
        available = max(product.inventory or 0, 0)
        self.products.zero_product_stock(product.id, sold=quantity)
        return available

    def _decrement_variant(self, variant, quantity: int) -> int:
        if self.products.decrement_variant_stock(variant.id, quantity):
            return quantity

        self.db.refresh(variant, ["inventory"])
        available = max(variant.inventory or 0, 0)
        self.products.zero_variant_stock(variant.id)
        return available
