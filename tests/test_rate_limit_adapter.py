"""Unit tests for the in-memory fixed-window rate limiter."""

import threading
from unittest.mock import Mock

import pytest

from ai_gateway.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter


def _limiter(clock: Mock, **kwargs) -> InMemoryFixedWindowRateLimiter:
    return InMemoryFixedWindowRateLimiter(clock=clock, **kwargs)


def test_defaults_allow_ten_requests_per_minute() -> None:
    clock = Mock(return_value=1_000_000.0)
    limiter = _limiter(clock)

    results = [limiter.check("1.2.3.4") for _ in range(11)]

    assert all(r.allowed for r in results[:10])
    assert results[10].allowed is False
    assert results[0].limit == 10


def test_remaining_decreases_by_one_per_request() -> None:
    clock = Mock(return_value=1_000_000.0)
    limiter = _limiter(clock, max_requests=5)

    remaining = [limiter.check("k").remaining for _ in range(5)]

    assert remaining == [4, 3, 2, 1, 0]


def test_blocks_when_over_limit_without_incrementing() -> None:
    clock = Mock(return_value=1_000_000.0)
    limiter = _limiter(clock, max_requests=2)

    assert limiter.check("k").allowed is True
    assert limiter.check("k").allowed is True

    blocked = limiter.check("k")
    assert blocked.allowed is False
    assert blocked.remaining == 0
    assert blocked.retry_after_seconds == 60
    assert limiter._records["k"].count == 2

    limiter.check("k")
    assert limiter._records["k"].count == 2


def test_window_is_not_extended_by_traffic() -> None:
    clock = Mock(return_value=1_000_000.0)
    limiter = _limiter(clock, window_ms=10_000, max_requests=3)

    limiter.check("k")
    clock.return_value = 1_009_000.0
    limiter.check("k")

    assert limiter._records["k"].reset_time == 1_010_000.0


def test_resets_after_window_elapses() -> None:
    clock = Mock(return_value=1_000_000.0)
    limiter = _limiter(clock, window_ms=10_000, max_requests=1)

    assert limiter.check("k").allowed is True
    assert limiter.check("k").allowed is False

    # The reset instant itself still belongs to the old window.
    clock.return_value = 1_010_000.0
    assert limiter.check("k").allowed is False

    clock.return_value = 1_010_001.0
    fresh = limiter.check("k")
    assert fresh.allowed is True
    assert fresh.remaining == 0
    assert limiter._records["k"].reset_time == 1_020_001.0


def test_isolated_by_key() -> None:
    clock = Mock(return_value=1_000_000.0)
    limiter = _limiter(clock, max_requests=1)

    assert limiter.check("k1").allowed is True
    assert limiter.check("k1").allowed is False

    result = limiter.check("k2")
    assert result.allowed is True
    assert result.remaining == 0


def test_empty_key_is_a_shared_bucket() -> None:
    clock = Mock(return_value=1_000_000.0)
    limiter = _limiter(clock, max_requests=2)

    assert limiter.check("").allowed is True
    assert limiter.check("").allowed is True
    assert limiter.check("").allowed is False
    assert limiter.check("other").allowed is True


def test_per_call_overrides() -> None:
    clock = Mock(return_value=1_000_000.0)
    limiter = _limiter(clock)

    first = limiter.check("k", window_ms=1_000, max_requests=20)
    assert first.remaining == 19
    assert first.limit == 20
    assert limiter._records["k"].reset_time == 1_001_000.0


@pytest.mark.parametrize(
    "overrides",
    [
        {"window_ms": 0},
        {"window_ms": -5},
        {"max_requests": 0},
        {"max_requests": -1},
    ],
)
def test_non_positive_overrides_fail_closed(overrides: dict) -> None:
    clock = Mock(return_value=1_000_000.0)
    limiter = _limiter(clock)

    for _ in range(3):
        result = limiter.check("k", **overrides)
        assert result.allowed is False
        assert result.remaining == 0

    assert len(limiter) == 0


def test_sweep_removes_expired_records_after_interval() -> None:
    clock = Mock(return_value=1_000_000.0)
    limiter = _limiter(clock, window_ms=1_000, cleanup_interval_ms=300_000)

    limiter.check("idle-1")
    limiter.check("idle-2")
    assert len(limiter) == 2

    # Expired, but the sweep interval has not elapsed yet.
    clock.return_value = 1_100_000.0
    limiter.check("active")
    assert len(limiter) == 3

    clock.return_value = 1_300_000.0
    limiter.check("active")
    assert len(limiter) == 1
    assert "active" in limiter._records


def test_sweep_keeps_live_records() -> None:
    clock = Mock(return_value=1_000_000.0)
    limiter = _limiter(clock, window_ms=600_000, max_requests=2)

    limiter.check("k")
    limiter.check("k")

    clock.return_value = 1_300_000.0
    assert limiter.check("k").allowed is False
    assert len(limiter) == 1


def test_concurrent_checks_never_exceed_limit() -> None:
    limiter = InMemoryFixedWindowRateLimiter(max_requests=50, window_ms=60_000)
    results: list[bool] = []
    lock = threading.Lock()

    def worker() -> None:
        for _ in range(20):
            allowed = limiter.check("shared").allowed
            with lock:
                results.append(allowed)

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(results) == 50
    assert len(results) == 200


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_requests": 0, "window_ms": 60_000},
        {"max_requests": 1, "window_ms": 0},
        {"max_requests": 1, "window_ms": 1, "cleanup_interval_ms": 0},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemoryFixedWindowRateLimiter(**kwargs)
