# shopcore/domain/order_status.py
from shopcore.domain.errors import InvalidTransition

PENDING = "pending"
PROCESSING = "processing"
COMPLETED = "completed"
PAYMENT_FAILED = "payment_failed"
CANCELLED = "cancelled"
REFUNDED = "refunded"

STATUSES = (PENDING, PROCESSING, COMPLETED, PAYMENT_FAILED, CANCELLED, REFUNDED)
TERMINAL = frozenset({COMPLETED, CANCELLED, REFUNDED})

#statusy platnosci
PAYMENT_PENDING = "pending"
PAYMENT_COMPLETED = "completed"
PAYMENT_FAILED_STATUS = "failed"
PAYMENT_REFUNDED = "refunded"

#przejscia administracyjne - pending -> processing tylko przez weryfikacje platnosci
_TRANSITIONS = {
    PENDING: {PAYMENT_FAILED, CANCELLED, REFUNDED},
    PROCESSING: {COMPLETED, CANCELLED, REFUNDED},
    PAYMENT_FAILED: {CANCELLED, REFUNDED},
}


def can_transition(current: str, target: str) -> bool:
    return target in _TRANSITIONS.get(current, set())


def ensure_transition(current: str, target: str) -> None:
    if target not in STATUSES:
        raise InvalidTransition(f"Unknown order status '{target}'")
    if not can_transition(current, target):
        raise InvalidTransition(f"Order cannot move from '{current}' to '{target}'")


def ensure_payment_transition(current: str) -> None:
    """Potwierdzona platnosc: jedyna droga z pending do processing."""
    if current != PENDING:
        raise InvalidTransition(f"Order is {current} and cannot be paid")
