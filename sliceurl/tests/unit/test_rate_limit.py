import pytest
import redis
from unittest.mock import MagicMock, patch

from sliceurl.errors import RateLimitExceededError
from sliceurl.rate_limit import RateLimiter, check_rate_limit, get_rate_limit_key

def test_get_rate_limit_key():
    assert get_rate_limit_key("auth", "127.0.0.1") == "rate:auth:127.0.0.1"

def test_check_rate_limit(redis_mock):
    key = get_rate_limit_key("shorten", "10.0.0.1")

    assert check_rate_limit(key, limit=2, window=60) is True
    assert check_rate_limit(key, limit=2, window=60) is True
    assert check_rate_limit(key, limit=2, window=60) is False

    assert int(redis_mock.get(key)) == 3
    assert 0 < redis_mock.ttl(key) <= 60

def test_check_rate_limit_keys_are_independent(redis_mock):
    assert check_rate_limit("rate:auth:a", limit=1, window=60) is True
    assert check_rate_limit("rate:auth:b", limit=1, window=60) is True
    assert check_rate_limit("rate:auth:a", limit=1, window=60) is False

def test_check_rate_limit_keeps_window_fixed(redis_mock):
    key = get_rate_limit_key("auth", "10.0.0.9")
    check_rate_limit(key, limit=5, window=60)
    redis_mock.expire(key, 10)

    check_rate_limit(key, limit=5, window=60)

    assert redis_mock.ttl(key) <= 10

def test_check_rate_limit_restores_lost_expiry(redis_mock):
    key = get_rate_limit_key("auth", "10.0.0.8")
    # Счетчик, оставшийся без срока жизни
    redis_mock.set(key, 100)

    assert check_rate_limit(key, limit=5, window=60) is False
    assert 0 < redis_mock.ttl(key) <= 60

def test_check_rate_limit_fails_open():
    broken = MagicMock()
    broken.pipeline.return_value.execute.side_effect = redis.exceptions.ConnectionError("down")

    with patch('sliceurl.rate_limit.redis_client', broken):
        assert check_rate_limit("rate:auth:a", limit=1, window=60) is None

@pytest.mark.asyncio
async def test_rate_limiter_dependency(redis_mock):
    limiter = RateLimiter("test", limit=1, window=30, message="Slow down")

    request = MagicMock()
    request.client.host = "10.0.0.2"
    request.headers = {}

    await limiter(request)

    with pytest.raises(RateLimitExceededError) as exc_info:
        await limiter(request)

    assert exc_info.value.status_code == 429
    assert exc_info.value.message == "Slow down"
    assert exc_info.value.rate_limit == {"window": 30, "maxRequests": 1, "retryAfter": 30}

@pytest.mark.asyncio
async def test_rate_limiter_disabled(redis_mock):
    limiter = RateLimiter("test", limit=0, window=30, message="Slow down")

    request = MagicMock()
    request.client.host = "10.0.0.3"
    request.headers = {}

    with patch('sliceurl.rate_limit.settings.RATE_LIMIT_ENABLED', False):
        await limiter(request)

    assert redis_mock.get("rate:test:10.0.0.3") is None
