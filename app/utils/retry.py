# app/utils/retry.py
import redis
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from app.domain.errors import DuplicateKeyError


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )


def order_number_retry():
    #kolizja numeru zamowienia: dokladnie jedna ponowna proba z nowym numerem
    return retry(
        reraise=True,
        stop=stop_after_attempt(2),
        retry=retry_if_exception_type(DuplicateKeyError),
    )
