"""Tests for ExpiringCache: TTL expiry, invalidation and hit/miss metrics."""

from __future__ import annotations

from prometheus_client import REGISTRY

from alignex.services.cache import ExpiringCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _ops(cache: str, result: str) -> float:
    value = REGISTRY.get_sample_value(
        "permission_cache_operations_total", {"cache": cache, "result": result}
    )
    return value if value is not None else 0.0


def test_get_returns_value_before_expiry() -> None:
    clock = FakeClock()
    cache: ExpiringCache[int] = ExpiringCache("t-basic", 10, clock=clock)
    cache.set("k", 1)
    clock.now = 9.99
    assert cache.get("k") == 1


def test_entry_expires_at_ttl() -> None:
    clock = FakeClock()
    cache: ExpiringCache[int] = ExpiringCache("t-expiry", 10, clock=clock)
    cache.set("k", 1)
    clock.now = 10.0
    assert cache.get("k") is None
    # The expired entry is dropped, not just hidden.
    assert len(cache) == 0


def test_get_returns_default_on_miss() -> None:
    cache: ExpiringCache[int] = ExpiringCache("t-default", 10)
    sentinel = object()
    assert cache.get("missing", sentinel) is sentinel


def test_expired_entry_returns_given_default() -> None:
    clock = FakeClock()
    cache: ExpiringCache[str] = ExpiringCache("t-expired-default", 5, clock=clock)
    cache.set("k", "v")
    clock.now = 5.0
    assert cache.get("k", "fallback") == "fallback"


def test_none_is_a_cacheable_value() -> None:
    cache: ExpiringCache[int | None] = ExpiringCache("t-none", 10)
    sentinel = object()
    cache.set("k", None)
    assert cache.get("k", sentinel) is None


def test_set_refreshes_expiry() -> None:
    clock = FakeClock()
    cache: ExpiringCache[str] = ExpiringCache("t-refresh", 10, clock=clock)
    cache.set("k", "old")
    clock.now = 8
    cache.set("k", "new")
    clock.now = 15
    assert cache.get("k") == "new"


def test_delete_and_clear() -> None:
    cache: ExpiringCache[int] = ExpiringCache("t-delete", 10)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.delete("a")
    cache.delete("never-set")
    assert cache.get("a") is None
    assert cache.get("b") == 2

    cache.clear()
    assert len(cache) == 0


def test_hit_and_miss_counted_per_cache() -> None:
    cache: ExpiringCache[int] = ExpiringCache("t-metrics", 10)
    hits_before = _ops("t-metrics", "hit")
    misses_before = _ops("t-metrics", "miss")

    cache.get("k")
    cache.set("k", 1)
    cache.get("k")
    cache.get("k")

    assert _ops("t-metrics", "miss") - misses_before == 1
    assert _ops("t-metrics", "hit") - hits_before == 2
