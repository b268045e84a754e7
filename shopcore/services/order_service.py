# shopcore/services/order_service.py
from datetime import datetime, timezone
from typing import Any, Callable, Dict

import requests
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shopcore.data.models.order import OrderModel
from shopcore.domain import order_status
from shopcore.domain.errors import InternalError, InvalidTransition, NotFound
from shopcore.domain.schemas import OrderCreate
from shopcore.repos.order_repo import OrderRepo
from shopcore.services import notification_service as events
from shopcore.services.cart_service import CartService
from shopcore.services.notification_service import NotificationService
from shopcore.services.order_builder import OrderBuilder
from shopcore.services.payment_gateway import PaymentGatewayClient, to_minor_units
from shopcore.utils.settings import PAYMENT_CURRENCY, PAYMENT_KEY_ID, SITE_NAME
from shopcore.utils.logging import get_logger

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień.
    Separacja od CartService - koszyk jest tylko zrodlem linii.
    """

    def __init__(
        self,
        db: Session,
        gateway: PaymentGatewayClient | None = None,
        notifications: NotificationService | None = None,
        clock: Callable[[], datetime] = utcnow,
        builder: OrderBuilder | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.cart = CartService(db, clock=clock)
        self.builder = builder or OrderBuilder(db, clock=clock)
        self.gateway = gateway if gateway is not None else PaymentGatewayClient()
        self.notifications = notifications or NotificationService()

    def create_order(self, owner_id: str, payload: OrderCreate) -> Dict[str, Any]:
        """
        Use Case: Tworzenie zamówienia z koszyka.

        1. Buduje zamowienie (pending) z aktualnych linii koszyka
        2. Zaklada zamowienie w bramce platnosci
        3. Emituje order.created
        Stan magazynu i koszyk zmieniaja sie dopiero po weryfikacji platnosci.
        """
        billing = payload.billing_address
        if payload.use_shipping_as_billing or billing is None:
            billing = payload.shipping_address

        order = self.builder.build(
            owner_id,
            self.cart.lines(owner_id),
            billing_address=billing,
            shipping_address=payload.shipping_address,
            payment_method=payload.payment_method,
            shipping_amount=payload.shipping_amount,
            tax_amount=payload.tax_amount,
            discount_amount=payload.discount_amount,
            customer_note=payload.customer_note,
        )

        self.notifications.emit(
            events.ORDER_CREATED,
            order_id=order.id,
            order_number=order.order_number,
            owner_id=owner_id,
        )

        payment_data = self._start_gateway_payment(order)

        return {
            "order": self._order_to_dict(order),
            "payment_data": payment_data,
            "message": "Order created successfully" if payment_data
            else "Order created, but payment could not be started. Please retry payment",
        }

    def resume_payment(self, owner_id: str, order_id: int) -> Dict[str, Any]:
        """
        Use Case: Ponowienie platnosci dla istniejacego zamowienia pending.
        Nie tworzy nowego zamowienia - klient placi za to samo.
        """
        order = self.repo.get_owner_order(owner_id, order_id)

        if not order:
            raise NotFound("Order not found")

        if order.status != order_status.PENDING or order.payment_status == order_status.PAYMENT_COMPLETED:
            raise InvalidTransition("Payment is not pending for this order")

        gateway_order_id = (order.payment_details or {}).get("gateway_order_id")
        payment_data = (
            self._payment_data(order, gateway_order_id)
            if gateway_order_id
            else self._start_gateway_payment(order)
        )

        if payment_data is None:
            raise InternalError("Payment could not be started, please try again later")

        return {
            "order": self._order_to_dict(order),
            "payment_data": payment_data,
            "message": "Complete the payment for your order",
        }

    def get_order(self, owner_id: str, order_id: int) -> Dict[str, Any]:
        """
        Use Case: Pobranie zamówienia (Query).
        """
        order = self.repo.get_owner_order(owner_id, order_id)

        if not order:
            raise NotFound("Order not found")

        return self._order_to_dict(order)

    def list_orders(self, owner_id: str) -> list[Dict[str, Any]]:
        return [self._order_to_dict(o) for o in self.repo.list_owner_orders(owner_id)]

    def update_status(self, order_id: int, status: str, admin_note: str | None = None) -> Dict[str, Any]:
        """
        Use Case: Administracyjna zmiana statusu, zgodnie z maszyna stanow.
        """
        order = self.repo.get_order(order_id)

        if not order:
            raise NotFound("Order not found")

        previous = order.status
        order_status.ensure_transition(previous, status)

        order.status = status
        if status == order_status.PAYMENT_FAILED:
            order.payment_status = order_status.PAYMENT_FAILED_STATUS
        elif status == order_status.REFUNDED and order.payment_status == order_status.PAYMENT_COMPLETED:
            order.payment_status = order_status.PAYMENT_REFUNDED

        if admin_note:
            order.admin_note = f"{order.admin_note}\n{admin_note}" if order.admin_note else admin_note

        self._commit(order)

        logger.info(f"Order {order.order_number}: {previous} -> {status}")

        self.notifications.emit(
            events.ORDER_STATUS_CHANGED,
            order_id=order.id,
            order_number=order.order_number,
            previous=previous,
            status=status,
        )

        return self._order_to_dict(order)

    def _start_gateway_payment(self, order: OrderModel) -> Dict[str, Any] | None:
        try:
            gateway_order = self.gateway.create_order(
                order.grand_total,
                receipt=order.order_number,
                notes={"order_id": str(order.id), "owner_id": order.owner_id},
            )
        except requests.RequestException as e:
            #zamowienie zostaje pending, platnosc mozna wznowic przez resume_payment
            logger.error(f"Nie udalo sie zalozyc platnosci w bramce dla {order.order_number}: {e}")
            return None

        order.payment_details = {**(order.payment_details or {}), "gateway_order_id": gateway_order["id"]}
        self._commit(order)

        logger.info(f"Zamowienie {order.order_number} powiazane z bramka: {gateway_order['id']}")

        return self._payment_data(order, gateway_order["id"])

    def _commit(self, order: OrderModel) -> None:
        try:
            self.repo.commit()
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.exception(f"Blad zapisu zamowienia {order.id}")
            raise InternalError() from e

    @staticmethod
    def _payment_data(order: OrderModel, gateway_order_id: str) -> Dict[str, Any]:
        billing = order.billing_address or {}
        return {
            "order_id": gateway_order_id,
            "amount": to_minor_units(order.grand_total),
            "currency": PAYMENT_CURRENCY,
            "key": PAYMENT_KEY_ID,
            "name": SITE_NAME,
            "description": f"Payment for order {order.order_number}",
            "prefill": {
                "name": billing.get("name") or "",
                "contact": billing.get("phone") or "",
            },
            "notes": {
                "address": ", ".join(
                    part for part in (
                        billing.get("address_line1"),
                        billing.get("city"),
                        billing.get("state"),
                        billing.get("country"),
                    ) if part
                ),
            },
        }

    @staticmethod
    def _order_to_dict(order: OrderModel) -> Dict[str, Any]:
        #dict przeksztalcany w jsona przez OrderOut
        return {
            "id": order.id,
            "order_number": order.order_number,
            "owner_id": order.owner_id,
            "status": order.status,
            "payment_status": order.payment_status,
            "sub_total": order.sub_total,
            "tax_amount": order.tax_amount,
            "shipping_amount": order.shipping_amount,
            "discount_amount": order.discount_amount,
            "grand_total": order.grand_total,
            "shipping_address": order.shipping_address,
            "billing_address": order.billing_address,
            "customer_note": order.customer_note,
            "payment_method": order.payment_method,
            "needs_reconciliation": order.needs_reconciliation,
            "created_at": order.created_at,
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "variant_id": i.variant_id,
                    "sku": i.sku,
                    "name": i.name,
                    "price": i.price,
                    "quantity": i.quantity,
                    "total_price": i.total_price,
                    "product_data": i.product_data,
                }
                for i in order.items
            ],
        }
