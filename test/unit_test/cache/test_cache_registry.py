from __future__ import annotations

import threading

from langfuse_prompt_mcp.cache import CacheRegistry


def test_get_or_create_returns_same_instance_per_name(fake_clock) -> None:
    registry = CacheRegistry(clock=fake_clock, autostart=False)
    first = registry.get_or_create("prompts", ttl=300)
    again = registry.get_or_create("prompts", ttl=1)

    assert first is again
    # First registration decides the options
    assert again.default_ttl == 300
    assert registry.get_or_create("prompts-list", ttl=60) is not first
    assert sorted(registry.names()) == ["prompts", "prompts-list"]


def test_default_ttl_when_not_given(fake_clock) -> None:
    registry = CacheRegistry(clock=fake_clock, autostart=False)
    assert registry.get_or_create("x").default_ttl == 300


def test_clear_all_keeps_registrations(fake_clock) -> None:
    registry = CacheRegistry(clock=fake_clock, autostart=False)
    a = registry.get_or_create("a")
    b = registry.get_or_create("b")
    a.set("k", 1)
    b.set("k", 2)

    registry.clear_all()

    assert a.size() == 0 and b.size() == 0
    assert registry.get_or_create("a") is a


def test_sweep_removes_expired_entries_from_every_cache(fake_clock) -> None:
    registry = CacheRegistry(clock=fake_clock, autostart=False)
    short = registry.get_or_create("short", ttl=10)
    long = registry.get_or_create("long", ttl=100)
    short.set("k", 1)
    long.set("k", 2)
    long.set("gone", 3, ttl=5)

    fake_clock.advance(20)

    assert registry.sweep() == 2
    assert short.size() == 0
    assert long.get("k") == 2


def test_background_sweep_runs_and_stops() -> None:
    registry = CacheRegistry(sweep_interval=0.01, autostart=False)
    swept = threading.Event()
    original = registry.sweep

    def sweep() -> int:
        swept.set()
        return original()

    registry.sweep = sweep  # type: ignore[method-assign]

    with registry:
        assert registry.running
        assert swept.wait(2.0)
    assert not registry.running


def test_start_is_idempotent_and_close_without_start() -> None:
    registry = CacheRegistry(sweep_interval=60, autostart=False)
    registry.close()
    registry.start()
    thread = registry._thread
    registry.start()
    assert registry._thread is thread
    registry.close(timeout=2.0)
    assert not registry.running


def test_sweep_starts_at_construction_by_default() -> None:
    registry = CacheRegistry(sweep_interval=60)
    try:
        assert registry.running
    finally:
        registry.close(timeout=2.0)
    assert not registry.running
