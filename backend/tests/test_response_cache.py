from __future__ import annotations

from backend.services.response_cache import ResponseCache
from backend.tests.fakes import FakeClock


def test_empty_cache_misses() -> None:
    cache = ResponseCache(ttl_seconds=300, clock=FakeClock())
    assert cache.get() is None
    assert cache.status() == {
        "present": False,
        "fresh": False,
        "age_seconds": None,
        "ttl_seconds": 300,
    }


def test_entry_is_served_within_ttl_with_age() -> None:
    clock = FakeClock()
    cache = ResponseCache(ttl_seconds=300, clock=clock)
    cache.put({"events": [1, 2]})

    clock.advance(120)
    entry = cache.get()

    assert entry is not None
    assert entry.value == {"events": [1, 2]}
    assert entry.age_seconds == 120


def test_entry_expires_at_ttl() -> None:
    clock = FakeClock()
    cache = ResponseCache(ttl_seconds=300, clock=clock)
    cache.put("result")

    clock.advance(299)
    assert cache.get() is not None
    clock.advance(1)
    assert cache.get() is None
    assert cache.status() == {"present": True, "fresh": False, "age_seconds": 300, "ttl_seconds": 300}


def test_put_replaces_entry_and_timestamp() -> None:
    clock = FakeClock()
    cache = ResponseCache(ttl_seconds=300, clock=clock)
    cache.put("old")
    clock.advance(250)
    cache.put("new")
    clock.advance(100)

    entry = cache.get()
    assert entry.value == "new"
    assert entry.age_seconds == 100
