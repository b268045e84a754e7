# shopcore/services/lock_service.py
import uuid

import redis

from shopcore.utils.retry import redis_retry
from shopcore.utils.settings import REDIS_URL
from shopcore.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje skrypt lua atomowo - nie mozna wcisnac sie miedzy GET a DEL


class LockService:
    """
    -krotka blokada na czas weryfikacji platnosci (jeden callback na raz)
    -zwalnianie tylko przez wlasciciela tokena
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def payment_key(gateway_order_id: str) -> str:
        return f"payment:{gateway_order_id}:lock"

    @redis_retry()
    def acquire_payment_lock(self, gateway_order_id: str, ttl: int) -> str | None:
        key = self.payment_key(gateway_order_id)
        token = uuid.uuid4().hex
        logger.info(f"Acquire lock {key}")
        #SET payment:order_X:lock "<token>" NX EX 30
        locked = self.redis.set(name=key, value=token, nx=True, ex=ttl)
        return token if locked else None

    @redis_retry()
    def release_payment_lock(self, gateway_order_id: str, token: str) -> bool:
        key = self.payment_key(gateway_order_id)
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)
