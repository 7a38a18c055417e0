# grabcoffee/services/lock_service.py
import redis

from grabcoffee.utils.retry import redis_retry
from grabcoffee.utils.settings import REDIS_URL
from grabcoffee.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje skrypt lua atomowo, nie mozna wcisnac sie miedzy GET a DEL


class LockService:
    """
    -blokada checkoutu na czas tworzenia intentu (klucz idempotencji)
    -zwalnianie locka tylko przez wlasciciela
    -cache tokenu PayPal
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @redis_retry()
    def acquire_checkout_lock(self, token: str, owner: str, ttl: int) -> bool:
        key = f"checkout:{token}:lock"
        logger.info(f"Acquire lock {key} for {owner}")
        #SET checkout:abc:lock "owner" NX EX 30
        return bool(self.redis.set(name=key, value=owner, nx=True, ex=ttl))

    @redis_retry()
    def release_checkout_lock(self, token: str, owner: str) -> bool:
        key = f"checkout:{token}:lock"
        logger.info(f"Release lock {key} for {owner}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, owner)
        return bool(res)

    @redis_retry()
    def get_cached(self, key: str) -> str | None:
        return self.redis.get(key)

    @redis_retry()
    def set_cached(self, key: str, value: str, ttl: int) -> None:
        self.redis.set(name=key, value=value, ex=ttl)
