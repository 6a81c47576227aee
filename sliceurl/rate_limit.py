import logging
import redis
from fastapi import Request
from typing import Optional

from sliceurl.config import settings
from sliceurl.errors import RateLimitExceededError
from sliceurl.utils import extract_client_info

logger = logging.getLogger(__name__)

redis_client = redis.Redis.from_url(
    settings.REDIS_URL,
    decode_responses=True,
    socket_connect_timeout=1,
    socket_timeout=1
)

RATE_LIMIT_PREFIX = "rate:"  # rate:<scope>:<ip> -> число запросов в текущем окне

def get_rate_limit_key(scope: str, client_ip: str) -> str:
    """Формирует ключ счетчика для области и IP клиента"""
    return f"{RATE_LIMIT_PREFIX}{scope}:{client_ip}"

def check_rate_limit(key: str, limit: int, window: int) -> Optional[bool]:
    """Считает запрос в фиксированном окне.

    Возвращает False, если лимит превышен, и None, если Redis недоступен
    (в этом случае лимит не применяется).
    """
    try:
        pipe = redis_client.pipeline()
        pipe.incr(key, 1)
        pipe.ttl(key)
        count, ttl = pipe.execute()
        # -1: ключ без срока жизни, окно нужно открыть заново
        if ttl == -1:
            redis_client.expire(key, window)
    except redis.exceptions.RedisError as e:
        logger.warning("Redis unavailable, rate limiting skipped: %s", e)
        return None

    return count <= limit


class RateLimiter:
    """Зависимость FastAPI: ограничивает число запросов с одного IP за окно"""

    def __init__(self, scope: str, limit: int, window: int, message: str):
        self.scope = scope
        self.limit = limit
        self.window = window
        self.message = message

    async def __call__(self, request: Request) -> None:
        if not settings.RATE_LIMIT_ENABLED:
            return

        client_ip = extract_client_info(request)["ip_address"]
        key = get_rate_limit_key(self.scope, client_ip)

        if check_rate_limit(key, self.limit, self.window) is False:
            logger.info("Rate limit exceeded for %s on %s", client_ip, self.scope)
            raise RateLimitExceededError(self.message, window=self.window, max_requests=self.limit)


shorten_limiter = RateLimiter(
    "shorten",
    settings.SHORTEN_RATE_LIMIT,
    settings.RATE_LIMIT_WINDOW,
    "Too many requests from this IP, please try again after 1 minute."
)

auth_limiter = RateLimiter(
    "auth",
    settings.AUTH_RATE_LIMIT,
    settings.RATE_LIMIT_WINDOW,
    "Too many attempts from this IP, please try again after 1 minute."
)
