# shopcore/utils/retry.py
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
import requests
import redis

from shopcore.utils.settings import ORDER_NUMBER_MAX_ATTEMPTS


def http_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(requests.RequestException),
    )


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )


def order_number_retry(exc_type, attempts: int | None = None):
    #kolizja numeru zamowienia -> nowy numer i kolejna proba, bez czekania
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts or ORDER_NUMBER_MAX_ATTEMPTS),
        retry=retry_if_exception_type(exc_type),
    )
