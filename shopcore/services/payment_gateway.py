# shopcore/services/payment_gateway.py
from decimal import Decimal

import requests

from shopcore.utils.retry import http_retry
from shopcore.utils.settings import (
    PAYMENT_CURRENCY,
    PAYMENT_GATEWAY_URL,
    PAYMENT_KEY_ID,
    PAYMENT_KEY_SECRET,
)
from shopcore.utils.logging import get_logger

logger = get_logger(__name__)


def to_minor_units(amount: Decimal) -> int:
    #bramka liczy w najmniejszej jednostce (paise)
    return int((Decimal(amount) * 100).to_integral_value())


class PaymentGatewayClient:
    """Klient REST bramki platnosci (API w stylu Razorpay, basic auth)."""

    def __init__(
        self,
        base_url: str | None = None,
        key_id: str | None = None,
        key_secret: str | None = None,
        timeout: int = 5,
    ):
        self.base_url = (base_url or PAYMENT_GATEWAY_URL).rstrip("/")
        self.key_id = key_id if key_id is not None else PAYMENT_KEY_ID
        self.key_secret = key_secret if key_secret is not None else PAYMENT_KEY_SECRET
        self.timeout = timeout

    @http_retry()
    def create_order(self, amount: Decimal, receipt: str, notes: dict, currency: str | None = None) -> dict:
        url = f"{self.base_url}/orders"
        logger.info(f"PaymentGatewayClient POST {url} receipt={receipt}")

        resp = requests.post(
            url,
            json={
                "amount": to_minor_units(amount),
                "currency": currency or PAYMENT_CURRENCY,
                "receipt": receipt,
                "notes": notes,
            },
            auth=(self.key_id, self.key_secret),
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    @http_retry()
    def fetch_payment(self, payment_id: str) -> dict:
        url = f"{self.base_url}/payments/{payment_id}"
        logger.info(f"PaymentGatewayClient GET {url}")

        resp = requests.get(url, auth=(self.key_id, self.key_secret), timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()
