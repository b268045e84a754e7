from decimal import Decimal

import pytest

from conftest import ADDRESS, sign
from shopcore.data.models import InventoryTransactionModel, PaymentModel
from shopcore.domain import order_status
from shopcore.domain.errors import AlreadyVerified, ConcurrencyConflict, InvalidTransition, NotFound, SignatureMismatch
from shopcore.domain.schemas import OrderCreate
from shopcore.services import notification_service as events
from shopcore.services.payment_service import compute_signature, signature_matches


@pytest.fixture
def placed(db, order_service, make_product, add_line):
    product = make_product(price=Decimal("50.00"), inventory=10)
    add_line("u1", product, quantity=2)
    result = order_service.create_order(
        "u1", OrderCreate(shipping_address=ADDRESS, tax_amount="5", shipping_amount="10")
    )
    return product, result["order"]["id"], result["payment_data"]["order_id"]


def test_signature_helpers():
    signature = compute_signature("s3cret", "order_1", "pay_1")
    assert len(signature) == 64
    assert signature_matches("s3cret", "order_1", "pay_1", signature)
    assert not signature_matches("s3cret", "order_1", "pay_2", signature)
    assert not signature_matches("other", "order_1", "pay_1", signature)


def test_end_to_end_verification(db, payment_service, order_service, notifications, placed):
    product, order_id, gw_order = placed

    result = payment_service.verify(order_id, gw_order, "pay_1", sign(gw_order, "pay_1"))

    assert result.success
    assert result.status == order_status.PROCESSING
    assert result.payment_status == order_status.PAYMENT_COMPLETED
    assert result.warnings == []

    db.refresh(product)
    assert product.inventory == 8
    assert product.sold_count == 2

    #kupione pozycje znikaja z koszyka
    assert order_service.cart.lines("u1") == []
    assert events.PAYMENT_VERIFIED in notifications.names()


def test_replayed_callback_has_no_side_effects(db, payment_service, placed):
    product, order_id, gw_order = placed
    signature = sign(gw_order, "pay_1")

    payment_service.verify(order_id, gw_order, "pay_1", signature)
    with pytest.raises(AlreadyVerified):
        payment_service.verify(order_id, gw_order, "pay_1", signature)

    db.refresh(product)
    assert product.inventory == 8
    assert db.query(PaymentModel).filter_by(status="completed").count() == 1
    assert db.query(InventoryTransactionModel).count() == 1


def test_second_payment_for_paid_order_is_ignored(db, payment_service, placed):
    product, order_id, gw_order = placed
    payment_service.verify(order_id, gw_order, "pay_1", sign(gw_order, "pay_1"))

    with pytest.raises(AlreadyVerified):
        payment_service.verify(order_id, gw_order, "pay_2", sign(gw_order, "pay_2"))

    db.refresh(product)
    assert product.inventory == 8


def test_tampered_signature_is_rejected(db, payment_service, order_service, notifications, placed):
    product, order_id, gw_order = placed

    with pytest.raises(SignatureMismatch):
        payment_service.verify(order_id, gw_order, "pay_1", "0" * 64)

    order = order_service.get_order("u1", order_id)
    assert order["status"] == order_status.PENDING
    assert order["payment_status"] == order_status.PAYMENT_FAILED_STATUS

    db.refresh(product)
    assert product.inventory == 10
    assert len(order_service.cart.lines("u1")) == 1
    assert events.PAYMENT_FAILED in notifications.names()


def test_rejected_order_can_still_be_paid(db, payment_service, placed):
    product, order_id, gw_order = placed

    with pytest.raises(SignatureMismatch):
        payment_service.verify(order_id, gw_order, "pay_1", "bad")

    result = payment_service.verify(order_id, gw_order, "pay_2", sign(gw_order, "pay_2"))
    assert result.success

    db.refresh(product)
    assert product.inventory == 8


def test_signature_for_other_gateway_order_is_rejected(db, payment_service, placed):
    product, order_id, _ = placed

    #poprawny podpis, ale dla innego zamowienia w bramce
    with pytest.raises(SignatureMismatch):
        payment_service.verify(order_id, "order_other", "pay_9", sign("order_other", "pay_9"))

    db.refresh(product)
    assert product.inventory == 10


def test_gateway_reported_failure(db, payment_service, gateway, order_service, placed):
    product, order_id, gw_order = placed
    gateway.payment_status = "failed"

    result = payment_service.verify(order_id, gw_order, "pay_1", sign(gw_order, "pay_1"))

    assert not result.success
    assert result.status == order_status.PENDING
    assert result.payment_status == order_status.PAYMENT_FAILED_STATUS
    assert order_service.resume_payment("u1", order_id)["payment_data"]["order_id"] == gw_order

    db.refresh(product)
    assert product.inventory == 10


def test_unknown_order(payment_service):
    with pytest.raises(NotFound):
        payment_service.verify(12345, "order_x", "pay_x", sign("order_x", "pay_x"))


def test_cancelled_order_cannot_be_paid(db, payment_service, order_service, notifications, placed):
    product, order_id, gw_order = placed
    order_service.update_status(order_id, order_status.CANCELLED)

    with pytest.raises(InvalidTransition):
        payment_service.verify(order_id, gw_order, "pay_1", sign(gw_order, "pay_1"))

    #pieniadze moga byc juz pobrane - proba zostaje zapisana do zwrotu
    attempt = db.query(PaymentModel).filter_by(gateway_payment_id="pay_1").one()
    assert attempt.status == "failed"
    assert attempt.payment_data["reason"] == "order_not_payable"
    assert events.PAYMENT_FAILED in notifications.names()

    db.refresh(product)
    assert product.inventory == 10
    assert order_service.get_order("u1", order_id)["status"] == order_status.CANCELLED


def test_admin_cannot_skip_payment_verification(db, payment_service, order_service, placed):
    product, order_id, gw_order = placed

    with pytest.raises(InvalidTransition):
        order_service.update_status(order_id, order_status.PROCESSING)

    result = payment_service.verify(order_id, gw_order, "pay_1", sign(gw_order, "pay_1"))

    assert result.status == order_status.PROCESSING
    db.refresh(product)
    assert product.inventory == 8


def test_concurrent_verification_is_locked_out(payment_service, lock, placed):
    _, order_id, gw_order = placed
    lock.acquire_payment_lock(gw_order, ttl=30)

    with pytest.raises(ConcurrencyConflict):
        payment_service.verify(order_id, gw_order, "pay_1", sign(gw_order, "pay_1"))


def test_lock_is_released_after_failure(payment_service, lock, placed):
    _, order_id, gw_order = placed

    with pytest.raises(SignatureMismatch):
        payment_service.verify(order_id, gw_order, "pay_1", "bad")

    assert lock.held == {}
    assert lock.released == [gw_order]
