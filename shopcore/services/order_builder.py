# shopcore/services/order_builder.py
import secrets
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from shopcore.data.models.order import OrderItemModel, OrderModel
from shopcore.domain import order_status
from shopcore.domain.errors import (
    ConstraintViolation,
    EmptyCart,
    InternalError,
    InvalidAmount,
    NotFound,
    OrderNumberExhausted,
)
from shopcore.domain.pricing import money, resolve_price
from shopcore.repos.order_repo import OrderRepo
from shopcore.utils.retry import order_number_retry
from shopcore.utils.settings import ORDER_NUMBER_MAX_ATTEMPTS
from shopcore.utils.logging import get_logger

logger = get_logger(__name__)


class OrderNumberCollision(Exception):
    """Numer zamowienia juz zajety - sygnal do wygenerowania nowego."""


def generate_order_number(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    millis = str(int(now.timestamp() * 1000))
    return f"ORD-{millis[-8:]}-{secrets.randbelow(10000):04d}"


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _decimal_str(value) -> str | None:
    return None if value is None else str(money(value))


def product_snapshot(product, variant=None) -> Dict[str, Any]:
    """Pelna kopia danych produktu/wariantu z chwili zakupu (JSON)."""
    return {
        "id": product.id,
        "name": product.name,
        "slug": product.slug,
        "sku": product.sku,
        "price": _decimal_str(product.price),
        "discount_price": _decimal_str(product.discount_price),
        "discount_start": _iso(product.discount_start),
        "discount_end": _iso(product.discount_end),
        "images": list(product.images or []),
        "variant": None if variant is None else {
            "id": variant.id,
            "name": variant.name,
            "sku": variant.sku,
            "price": _decimal_str(variant.price),
            "options": dict(variant.options or {}),
            "images": list(variant.images or []),
        },
    }


def _address_dict(address) -> Dict[str, Any]:
    if hasattr(address, "model_dump"):
        return address.model_dump()
    return dict(address)


class OrderBuilder:
    """
    Zamienia linie koszyka w niezmienne zamowienie.

    Ceny sa liczone ponownie w chwili skladania zamowienia (nie z wczesniejszego
    odczytu koszyka), a kazda pozycja dostaje snapshot produktu. Stan magazynu
    i koszyk zostaja nietkniete az do potwierdzenia platnosci.
    """

    def __init__(
        self,
        db: Session,
        clock: Callable[[], datetime] | None = None,
        number_generator: Callable[[], str] = generate_order_number,
        max_attempts: int = ORDER_NUMBER_MAX_ATTEMPTS,
    ):
        self.repo = OrderRepo(db)
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.number_generator = number_generator
        self.max_attempts = max_attempts

    def build(
        self,
        owner_id: str,
        lines: Iterable,
        billing_address,
        shipping_address,
        payment_method: str,
        shipping_amount: Decimal = Decimal("0"),
        tax_amount: Decimal = Decimal("0"),
        discount_amount: Decimal = Decimal("0"),
        customer_note: str | None = None,
    ) -> OrderModel:
        lines = list(lines)
        if not lines:
            raise EmptyCart()

        shipping_amount, tax_amount, discount_amount = (
            money(shipping_amount),
            money(tax_amount),
            money(discount_amount),
        )
        if min(shipping_amount, tax_amount, discount_amount) < 0:
            raise InvalidAmount()

        now = self.clock()
        items = [self._item_snapshot(line, now) for line in lines]

        sub_total = sum((i["total_price"] for i in items), Decimal("0.00"))
        grand_total = max(sub_total + tax_amount + shipping_amount - discount_amount, Decimal("0.00"))

        fields = {
            "owner_id": owner_id,
            "status": order_status.PENDING,
            "payment_status": order_status.PAYMENT_PENDING,
            "sub_total": sub_total,
            "tax_amount": tax_amount,
            "shipping_amount": shipping_amount,
            "discount_amount": discount_amount,
            "grand_total": money(grand_total),
            "shipping_address": _address_dict(shipping_address),
            "billing_address": _address_dict(billing_address),
            "customer_note": customer_note or "",
            "payment_method": payment_method,
            "payment_details": {},
            "needs_reconciliation": False,
        }

        insert = order_number_retry(OrderNumberCollision, self.max_attempts)(self._insert)
        try:
            order = insert(fields, items)
        except OrderNumberCollision as e:
            logger.error(f"Brak wolnego numeru zamowienia po {self.max_attempts} probach")
            raise OrderNumberExhausted() from e

        logger.info(
            f"Order {order.order_number} created for {owner_id}: "
            f"sub_total={order.sub_total} grand_total={order.grand_total}"
        )
        return order

    def _insert(self, fields: Dict[str, Any], items: list[Dict[str, Any]]) -> OrderModel:
        #przy kazdej probie nowe obiekty ORM - po rollbacku stare sa bezuzyteczne
        order_number = self.number_generator()
        order = OrderModel(
            order_number=order_number,
            items=[OrderItemModel(**item) for item in items],
            **fields,
        )

        try:
            self.repo.add_order(order)
            self.repo.commit()
        except IntegrityError as e:
            self.repo.rollback()
            if self.repo.order_number_exists(order_number):
                logger.warning(f"Kolizja numeru zamowienia {order_number}, generuje nowy")
                raise OrderNumberCollision(order_number) from e
            raise ConstraintViolation("Could not place the order") from e
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.exception(f"Blad zapisu zamowienia dla {fields['owner_id']}")
            raise InternalError() from e

        return order

    @staticmethod
    def _item_snapshot(line, now: datetime) -> Dict[str, Any]:
        product = line.product
        variant = line.variant
        if product is None:
            raise NotFound("Item no longer available")

        unit_price = resolve_price(product, variant, now)
        quantity = int(line.quantity)

        return {
            "product_id": product.id,
            "variant_id": variant.id if variant else None,
            "sku": variant.sku if variant else product.sku,
            "name": f"{product.name} ({variant.name})" if variant else product.name,
            "price": unit_price,
            "quantity": quantity,
            "total_price": money(unit_price * quantity),
            "product_data": product_snapshot(product, variant),
        }
