from types import SimpleNamespace

import pytest

from app import rate_limiter
from app.rate_limiter import check_rate_limit


@pytest.fixture
def clock(monkeypatch):
    now = [1_000_000.0]
    monkeypatch.setattr(rate_limiter, "time", SimpleNamespace(time=lambda: now[0]))
    return now


class FakeRedis:
    def __init__(self, count=None, ttl=-2):
        self.count = count
        self.ttl_seconds = ttl
        self.writes = []

    def get(self, key):
        return self.count

    def ttl(self, key):
        return self.ttl_seconds

    def set(self, key, value, ex=None):
        self.writes.append((key, value, ex))


def test_allows_up_to_limit_then_blocks(clock):
    results = [check_rate_limit("login:1.2.3.4", 3, 60) for _ in range(4)]

    assert [allowed for allowed, _, _ in results] == [True, True, True, False]
    assert results[-1][1] == 3
    assert results[-1][2] == 60


def test_window_resets_after_expiry(clock):
    for _ in range(2):
        check_rate_limit("register:ip", 2, 60)
    assert check_rate_limit("register:ip", 2, 60)[0] is False

    clock[0] += 61

    assert check_rate_limit("register:ip", 2, 60) == (True, 1, 60)


def test_keys_are_counted_separately(clock):
    check_rate_limit("login:a", 1, 60)
    assert check_rate_limit("login:a", 1, 60)[0] is False
    assert check_rate_limit("login:b", 1, 60)[0] is True


def test_existing_redis_window_is_loaded_and_synced(clock):
    client = FakeRedis(count=b"4", ttl=30)

    allowed, count, ttl = check_rate_limit("login:shared", 5, 60, client)

    assert (allowed, count, ttl) == (True, 5, 30)
    assert client.writes == []

    clock[0] += rate_limiter.MEMORY_CACHE_SYNC_INTERVAL

    assert check_rate_limit("login:shared", 5, 60, client)[0] is False
    assert client.writes == [("login:shared", 5, 60)]
