# shopcore/domain/errors.py
"""
Bledy domenowe.

Dziedzicza po wbudowanych wyjatkach (ValueError, PermissionError, RuntimeError),
ktore serwisy i routery juz obsluguja, a `message` to krotki komunikat dla
klienta. Pierwotna przyczyna zostaje w __cause__ i trafia tylko do logow.
"""
from dataclasses import dataclass


class ShopError(Exception):
    code = "error"
    message = "Something went wrong"

    def __init__(self, message: str | None = None):
        if message:
            self.message = message
        super().__init__(self.message)


#bledy wywolujacego - nie ponawiamy automatycznie
class NotFound(ShopError, ValueError):
    code = "not_found"
    message = "Not found"


class InvalidQuantity(ShopError, ValueError):
    code = "invalid_quantity"
    message = "Quantity must be at least 1"


class InvalidAmount(ShopError, ValueError):
    code = "invalid_amount"
    message = "Amounts must not be negative"


class OutOfStock(ShopError, ValueError):
    code = "out_of_stock"
    message = "Item no longer available"


class EmptyCart(ShopError, ValueError):
    code = "empty_cart"
    message = "Your cart is empty"


class InvalidTransition(ShopError, ValueError):
    code = "invalid_transition"
    message = "Order status cannot be changed"


#platnosci
class SignatureMismatch(ShopError, PermissionError):
    code = "signature_mismatch"
    message = "Payment verification failed, please retry payment"


class AlreadyVerified(ShopError):
    """Powtorzony callback - sukces bez efektow ubocznych."""

    code = "already_verified"
    message = "Payment already verified"


#bledy skladowania
class OrderNumberExhausted(ShopError, RuntimeError):
    code = "order_number_exhausted"
    message = "Could not place the order right now, please try again"


class ConcurrencyConflict(ShopError, RuntimeError):
    code = "concurrency_conflict"
    message = "The data was changed by another request, please try again"


class ConstraintViolation(ShopError, RuntimeError):
    code = "constraint_violation"
    message = "The request conflicts with existing data"


class InternalError(ShopError, RuntimeError):
    code = "internal_error"
    message = "Something went wrong, please try again later"


@dataclass(frozen=True)
class InsufficientInventory:
    """Ostrzezenie (nie wyjatek) - brak stanu po zaksiegowanej platnosci."""

    product_id: int
    variant_id: int | None
    requested: int
    available: int
