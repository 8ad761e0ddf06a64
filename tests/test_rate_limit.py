import threading

import pytest
from starlette.requests import Request

from contact_api.core.exceptions import RateLimitExceeded
from contact_api.core.rate_limit import MemoryRateLimitStore, RateLimiter


def make_request(client_host="10.0.0.1", headers=None):
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/contact",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": (client_host, 12345),
    }
    return Request(scope)


def test_store_counts_within_window(clock):
    store = MemoryRateLimitStore(900, clock=clock)

    assert store.hit("a")[0] == 1
    assert store.hit("a")[0] == 2
    assert store.hit("b")[0] == 1


def test_store_resets_after_window(clock):
    store = MemoryRateLimitStore(900, clock=clock)
    store.hit("a")
    store.hit("a")

    clock.advance(900)
    count, reset_at = store.hit("a")

    assert count == 1
    assert reset_at == clock.now + 900


def test_store_reset_forgets_key(clock):
    store = MemoryRateLimitStore(900, clock=clock)
    store.hit("a")

    store.reset("a")

    assert store.hit("a")[0] == 1


def test_store_is_safe_under_concurrent_hits(clock):
    store = MemoryRateLimitStore(900, clock=clock)

    def worker():
        for _ in range(100):
            store.hit("shared")

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.hit("shared")[0] == 801


def test_limiter_raises_after_max_requests(rate_limiter):
    for _ in range(10):
        rate_limiter.check("10.0.0.1")

    with pytest.raises(RateLimitExceeded) as exc_info:
        rate_limiter.check("10.0.0.1")

    assert exc_info.value.retry_after == 900
    assert exc_info.value.headers["Retry-After"] == "900"
    assert exc_info.value.headers["X-RateLimit-Remaining"] == "0"


def test_limiter_keys_are_independent(rate_limiter):
    for _ in range(10):
        rate_limiter.check("10.0.0.1")

    assert rate_limiter.check("10.0.0.2")["X-RateLimit-Remaining"] == "9"


def test_client_key_uses_peer_address_by_default(rate_limiter):
    request = make_request("10.0.0.1", {"X-Forwarded-For": "203.0.113.7"})

    assert rate_limiter.client_key(request) == "10.0.0.1"


def test_client_key_uses_forwarded_for_behind_trusted_proxy(clock):
    limiter = RateLimiter(MemoryRateLimitStore(900, clock=clock), trust_proxy=True)
    request = make_request("10.0.0.1", {"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})

    assert limiter.client_key(request) == "203.0.113.7"


def test_client_key_falls_back_without_forwarded_header(clock):
    limiter = RateLimiter(MemoryRateLimitStore(900, clock=clock), trust_proxy=True)

    assert limiter.client_key(make_request("10.0.0.1")) == "10.0.0.1"


def test_from_settings(settings):
    limiter = RateLimiter.from_settings(settings)

    assert limiter.max_requests == 10
    assert limiter.store.window_seconds == 900
    assert limiter.trust_proxy is False
