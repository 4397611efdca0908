from unittest.mock import MagicMock

from setup_wizard import rate_limiter
from setup_wizard.rate_limiter import check_rate_limit, get_redis_client


def test_allows_up_to_limit_then_blocks():
    results = [check_rate_limit("test:1.2.3.4", 3, 900) for _ in range(4)]

    assert [allowed for allowed, _, _ in results] == [True, True, True, False]
    assert results[-1][1] == 3
    assert 0 < results[-1][2] <= 900


def test_keys_are_independent():
    check_rate_limit("test:a", 1, 900)

    assert check_rate_limit("test:a", 1, 900)[0] is False
    assert check_rate_limit("test:b", 1, 900)[0] is True


def test_window_expiry_resets_count(monkeypatch):
    now = [1_000_000]
    monkeypatch.setattr(rate_limiter.time, "time", lambda: now[0])

    assert check_rate_limit("test:c", 1, 60)[0] is True
    assert check_rate_limit("test:c", 1, 60)[0] is False

    now[0] += 61
    assert check_rate_limit("test:c", 1, 60)[0] is True


def test_no_redis_url_means_memory_only():
    assert get_redis_client(None) is None


def test_unreachable_redis_falls_back_to_memory(monkeypatch):
    broken = MagicMock()
    broken.ping.side_effect = ConnectionError("connection refused")
    monkeypatch.setattr(rate_limiter.redis, "from_url", lambda *args, **kwargs: broken)
    monkeypatch.setattr(rate_limiter, "redis_client", None)
    monkeypatch.setattr(rate_limiter, "redis_unavailable_until", 0.0)

    assert get_redis_client("redis://localhost:6379/0") is None
    assert check_rate_limit("test:d", 1, 900, None)[0] is True


def test_counts_are_seeded_from_redis():
    client = MagicMock()
    client.get.return_value = "5"
    client.ttl.return_value = 120

    allowed, count, ttl = check_rate_limit("test:e", 5, 900, client)

    assert allowed is False
    assert count == 5
    assert ttl <= 120
