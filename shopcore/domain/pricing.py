# shopcore/domain/pricing.py
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")


def money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def as_utc(value: datetime | None) -> datetime | None:
    #SQLite oddaje daty bez strefy - traktujemy je jako UTC
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def discount_active(product, now: datetime) -> bool:
    if product.discount_price is None:
        return False

    now = as_utc(now)
    start = as_utc(product.discount_start)
    end = as_utc(product.discount_end)

    if start is not None and now < start:
        return False
    if end is not None and now > end:
        return False
    return True


def resolve_price(product, variant=None, now: datetime | None = None) -> Decimal:
    """
    Cena jednostkowa obowiazujaca w chwili `now`.

    1. cena wariantu (jesli ustawiona) - okna promocji nie dotycza wariantow
    2. cena promocyjna, jesli `now` miesci sie w [discount_start, discount_end]
    3. cena bazowa produktu
    """
    if variant is not None and variant.price is not None:
        return money(variant.price)

    if now is None:
        now = datetime.now(timezone.utc)

    if discount_active(product, now):
        return money(product.discount_price)

    return money(product.price)
