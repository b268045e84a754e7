# shopcore/services/payment_service.py
import hashlib
import hmac
from dataclasses import dataclass, field

import requests
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from shopcore.data.models.order import OrderModel
from shopcore.data.models.payment import PaymentModel
from shopcore.domain import order_status
from shopcore.domain.errors import (
    AlreadyVerified,
    ConcurrencyConflict,
    InsufficientInventory,
    InternalError,
    InvalidTransition,
    NotFound,
    SignatureMismatch,
)
from shopcore.repos.cart_repo import CartRepo
from shopcore.repos.order_repo import OrderRepo
from shopcore.repos.payment_repo import PaymentRepo
from shopcore.services import notification_service as events
from shopcore.services.inventory_service import InventoryService
from shopcore.services.lock_service import LockService
from shopcore.services.notification_service import NotificationService
from shopcore.services.payment_gateway import PaymentGatewayClient
from shopcore.utils.settings import PAYMENT_CURRENCY, PAYMENT_KEY_SECRET, PAYMENT_LOCK_TTL_SECONDS
from shopcore.utils.logging import get_logger, get_security_logger

logger = get_logger(__name__)
security_logger = get_security_logger()

#statusy platnosci po stronie bramki, ktore oznaczaja odrzucenie
GATEWAY_FAILED_STATUSES = {"failed"}


def compute_signature(secret: str, gateway_order_id: str, gateway_payment_id: str) -> str:
    message = f"{gateway_order_id}|{gateway_payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def signature_matches(secret: str, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
    expected = compute_signature(secret, gateway_order_id, gateway_payment_id)
    #porownanie w stalym czasie
    return hmac.compare_digest(expected.encode("utf-8"), (signature or "").encode("utf-8"))


@dataclass
class VerificationResult:
    order_id: int
    order_number: str
    success: bool
    status: str
    payment_status: str
    payment_id: int | None = None
    warnings: list[InsufficientInventory] = field(default_factory=list)
    message: str = ""


class PaymentService:
    """
    Weryfikacja callbacku bramki platnosci.

    Podpis HMAC-SHA256(secret, "order_id|payment_id") jest sprawdzany zanim
    cokolwiek zostanie uznane za zaplacone. Pierwsza poprawna weryfikacja
    przestawia zamowienie na processing i zdejmuje stan magazynu; kazda
    powtorka tego samego callbacku konczy sie AlreadyVerified bez efektow.
    """

    def __init__(
        self,
        db: Session,
        secret: str | None = None,
        gateway: PaymentGatewayClient | None = None,
        lock_service: LockService | None = None,
        notifications: NotificationService | None = None,
        lock_ttl: int = PAYMENT_LOCK_TTL_SECONDS,
    ):
        self.db = db
        self.orders = OrderRepo(db)
        self.payments = PaymentRepo(db)
        self.cart = CartRepo(db)
        self.inventory = InventoryService(db)
        self.secret = secret if secret is not None else PAYMENT_KEY_SECRET
        self.gateway = gateway
        self.lock_service = lock_service
        self.notifications = notifications or NotificationService()
        self.lock_ttl = lock_ttl

    def verify(
        self,
        order_id: int,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
    ) -> VerificationResult:

        if self.lock_service is None:
            return self._verify(order_id, gateway_order_id, gateway_payment_id, signature)

        #rownolegle dostarczenia tego samego webhooka - jeden na raz
        token = self.lock_service.acquire_payment_lock(gateway_order_id, ttl=self.lock_ttl)
        if not token:
            raise ConcurrencyConflict("Payment verification already in progress")

        try:
            return self._verify(order_id, gateway_order_id, gateway_payment_id, signature)
        finally:
            self.lock_service.release_payment_lock(gateway_order_id, token)

    def _verify(
        self,
        order_id: int,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
    ) -> VerificationResult:

        order = self.orders.get_order(order_id)
        if not order:
            raise NotFound("Order not found")

        expected_gateway_order = (order.payment_details or {}).get("gateway_order_id")
        if expected_gateway_order != gateway_order_id:
            security_logger.warning(
                f"Callback for order {order.id} carries gateway order {gateway_order_id}, "
                f"expected {expected_gateway_order}"
            )
            self._reject(order, gateway_order_id, gateway_payment_id, signature, "gateway_order_mismatch")
            raise SignatureMismatch()

        if not signature_matches(self.secret, gateway_order_id, gateway_payment_id, signature):
            security_logger.warning(
                f"Signature mismatch for order {order.id} "
                f"(gateway order {gateway_order_id}, payment {gateway_payment_id})"
            )
            self._reject(order, gateway_order_id, gateway_payment_id, signature, "signature_mismatch")
            raise SignatureMismatch()

        #idempotencja - ten sam callback drugi raz nic nie zmienia
        if self.payments.get_completed(gateway_order_id, gateway_payment_id):
            logger.info(f"Platnosc {gateway_payment_id} dla zamowienia {order.id} juz zweryfikowana")
            raise AlreadyVerified()

        if order.payment_status == order_status.PAYMENT_COMPLETED:
            logger.warning(
                f"Zamowienie {order.order_number} jest juz oplacone, "
                f"ignoruje platnosc {gateway_payment_id}"
            )
            raise AlreadyVerified()

        try:
            order_status.ensure_payment_transition(order.status)
        except InvalidTransition:
            #bramka mogla juz pobrac pieniadze - zostawiamy slad do zwrotu
            logger.error(
                f"Platnosc {gateway_payment_id} dla zamowienia {order.order_number} "
                f"w statusie {order.status}"
            )
            self._reject(order, gateway_order_id, gateway_payment_id, signature, "order_not_payable")
            raise

        payment_data = self._fetch_gateway_payment(gateway_payment_id)

        if payment_data.get("status") in GATEWAY_FAILED_STATUSES:
            return self._gateway_failure(order, gateway_order_id, gateway_payment_id, signature, payment_data)

        return self._complete(order, gateway_order_id, gateway_payment_id, signature, payment_data)

    def _fetch_gateway_payment(self, gateway_payment_id: str) -> dict:
        if self.gateway is None:
            return {}
        try:
            return self.gateway.fetch_payment(gateway_payment_id)
        except requests.RequestException as e:
            logger.error(f"Nie udalo sie pobrac platnosci {gateway_payment_id} z bramki: {e}")
            raise InternalError("Could not confirm the payment, please try again") from e

    def _complete(
        self,
        order: OrderModel,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
        payment_data: dict,
    ) -> VerificationResult:

        order_status.ensure_payment_transition(order.status)

        try:
            payment = self.payments.add_payment(
                self._payment_row(order, gateway_order_id, gateway_payment_id, signature, "completed", payment_data)
            )

            order.payment_status = order_status.PAYMENT_COMPLETED
            order.status = order_status.PROCESSING
            order.payment_details = {
                **(order.payment_details or {}),
                "gateway_order_id": gateway_order_id,
                "gateway_payment_id": gateway_payment_id,
                "signature": signature,
                "payment_status": order_status.PAYMENT_COMPLETED,
            }

            warnings = self.inventory.apply_order(order)

            #koszyk czyscimy dopiero po oplaceniu - tylko kupione pozycje
            self.cart.delete_lines(order.owner_id, [(i.product_id, i.variant_id) for i in order.items])

            self.db.commit()
        except IntegrityError as e:
            #drugi rownolegly callback przegral wyscig na unikalnym indeksie
            self.db.rollback()
            logger.info(f"Platnosc {gateway_payment_id} zweryfikowana rownolegle: {e.orig}")
            raise AlreadyVerified() from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Blad zapisu weryfikacji platnosci dla zamowienia {order.id}")
            raise InternalError() from e

        logger.info(f"Platnosc {gateway_payment_id} zweryfikowana, zamowienie {order.order_number} -> processing")

        self.notifications.emit(
            events.PAYMENT_VERIFIED,
            order_id=order.id,
            order_number=order.order_number,
            owner_id=order.owner_id,
        )
        if warnings:
            self.notifications.emit(
                events.RECONCILIATION_REQUIRED,
                order_id=order.id,
                order_number=order.order_number,
                products=[w.product_id for w in warnings],
            )

        return VerificationResult(
            order_id=order.id,
            order_number=order.order_number,
            success=True,
            status=order.status,
            payment_status=order.payment_status,
            payment_id=payment.id,
            warnings=warnings,
            message="Payment verified successfully",
        )

    def _gateway_failure(
        self,
        order: OrderModel,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
        payment_data: dict,
    ) -> VerificationResult:

        payment = self._record_failure(order, gateway_order_id, gateway_payment_id, signature, payment_data)
        logger.info(f"Bramka odrzucila platnosc {gateway_payment_id} dla zamowienia {order.order_number}")

        self.notifications.emit(
            events.PAYMENT_FAILED,
            order_id=order.id,
            order_number=order.order_number,
            owner_id=order.owner_id,
        )

        return VerificationResult(
            order_id=order.id,
            order_number=order.order_number,
            success=False,
            status=order.status,
            payment_status=order.payment_status,
            payment_id=payment.id,
            message="Payment failed, please retry payment for this order",
        )

    def _reject(self, order: OrderModel, gateway_order_id: str, gateway_payment_id: str, signature: str, reason: str) -> None:
        self._record_failure(
            order, gateway_order_id, gateway_payment_id, signature, {"reason": reason, "order_status": order.status}
        )
        self.notifications.emit(
            events.PAYMENT_FAILED,
            order_id=order.id,
            order_number=order.order_number,
            owner_id=order.owner_id,
            reason=reason,
        )

    def _record_failure(
        self,
        order: OrderModel,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
        payment_data: dict,
    ) -> PaymentModel:
        try:
            payment = self.payments.add_payment(
                self._payment_row(order, gateway_order_id, gateway_payment_id, signature, "failed", payment_data)
            )

            #status zamowienia zostaje pending - mozna ponowic platnosc
            if order.status == order_status.PENDING and order.payment_status != order_status.PAYMENT_COMPLETED:
                order.payment_status = order_status.PAYMENT_FAILED_STATUS

            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Blad zapisu nieudanej platnosci {gateway_payment_id} dla zamowienia {order.id}")
            raise InternalError() from e
        return payment

    @staticmethod
    def _payment_row(
        order: OrderModel,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
        status: str,
        payment_data: dict,
    ) -> PaymentModel:
        return PaymentModel(
            order_id=order.id,
            gateway_order_id=gateway_order_id,
            gateway_payment_id=gateway_payment_id,
            signature=signature or "",
            amount=order.grand_total,
            currency=payment_data.get("currency") or PAYMENT_CURRENCY,
            method=payment_data.get("method") or order.payment_method,
            status=status,
            payment_data=payment_data,
        )
