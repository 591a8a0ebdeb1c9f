"""Unit tests for the TTL query cache."""

import asyncio

import pytest

from schooldesk.application.services.query_cache import QueryCache, make_cache_key
from schooldesk.domain.entities import Identity, RecordType, Role


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def test_get_returns_fresh_entry(clock: FakeClock):
    cache = QueryCache(10, clock=clock)
    cache.set("k", ("a",))
    clock.now += 10
    assert cache.get("k") == ("a",)


def test_stale_entry_is_absent_before_any_sweep(clock: FakeClock):
    cache = QueryCache(10, clock=clock)
    cache.set("k", ("a",))
    clock.now += 10.5
    assert cache.get("k") is None
    assert len(cache) == 0


def test_disabled_cache_never_stores(clock: FakeClock):
    cache = QueryCache(10, enabled=False, clock=clock)
    cache.set("k", ("a",))
    assert cache.get("k") is None
    assert len(cache) == 0
    assert not cache.enabled


def test_invalidate_all(clock: FakeClock):
    cache = QueryCache(10, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.invalidate_all()
    assert cache.get("a") is None
    assert len(cache) == 0


def test_sweep_evicts_only_expired(clock: FakeClock):
    cache = QueryCache(10, clock=clock)
    cache.set("old", 1)
    clock.now += 8
    cache.set("new", 2)
    clock.now += 5

    assert cache.sweep() == 1
    assert cache.get("old") is None
    assert cache.get("new") == 2


def test_cache_key_is_canonical():
    viewer = Identity(Role.TEACHER, "Rina")
    first = make_cache_key("grade", {"class": "10A", "subject": "Math"}, viewer)
    second = make_cache_key(RecordType.GRADE, {"subject": "Math", "class": "10A"}, viewer)
    assert first == second


def test_cache_key_separates_viewers():
    filters = {"class": "10A"}
    teacher = make_cache_key("grade", filters, Identity(Role.TEACHER, "Rina"))
    student = make_cache_key("grade", filters, Identity(Role.STUDENT, "Rina"))
    nobody = make_cache_key("grade", filters, None)
    assert len({teacher, student, nobody}) == 3


@pytest.mark.asyncio
async def test_sweeper_runs_periodically(clock: FakeClock):
    cache = QueryCache(1, clock=clock)
    cache.set("k", 1)
    clock.now += 5

    await cache.start_sweeper(0.01)
    try:
        for _ in range(50):
            if len(cache) == 0:
                break
            await asyncio.sleep(0.01)
        assert len(cache) == 0
    finally:
        await cache.stop_sweeper()


@pytest.mark.asyncio
async def test_sweeper_not_started_when_disabled():
    cache = QueryCache(1, enabled=False)
    await cache.start_sweeper(0.01)
    assert cache._sweeper is None
    await cache.stop_sweeper()
