"""Tests for the news cache."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

import pytest

from taxnews.core import AggregationError, CacheState, NewsCache

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class CountingRefresh:
    """Refresh function that counts cycles and can be held open."""

    def __init__(self) -> None:
        self.calls = 0
        self.gate: asyncio.Event | None = None
        self.error: Exception | None = None

    async def __call__(self):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return [f"item-{self.calls}"]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def refresh():
    return CountingRefresh()


@pytest.fixture
def cache(refresh, clock):
    return NewsCache(refresh, ttl=timedelta(minutes=10), clock=clock)


@pytest.mark.asyncio
async def test_first_get_populates(cache, refresh, clock):
    """Test that an empty cache refreshes on first read."""
    assert cache.state == CacheState.EMPTY
    assert cache.snapshot is None

    snapshot = await cache.get()

    assert refresh.calls == 1
    assert snapshot.items == ("item-1",)
    assert snapshot.generated_at == T0
    assert cache.state == CacheState.FRESH


@pytest.mark.asyncio
async def test_get_within_ttl_uses_cache(cache, refresh, clock):
    """Test N reads within the TTL cause exactly one fetch cycle."""
    first = await cache.get()
    for _ in range(5):
        clock.advance(minutes=1)
        assert await cache.get() is first

    assert refresh.calls == 1


@pytest.mark.asyncio
async def test_stale_after_ttl(cache, refresh, clock):
    """Test a read after the TTL triggers exactly one new cycle."""
    await cache.get()
    clock.advance(minutes=11)

    assert cache.state == CacheState.STALE
    snapshot = await cache.get()

    assert refresh.calls == 2
    assert snapshot.items == ("item-2",)
    assert snapshot.generated_at == T0 + timedelta(minutes=11)
    assert cache.state == CacheState.FRESH


@pytest.mark.asyncio
async def test_exactly_ttl_is_still_fresh(cache, refresh, clock):
    """Test staleness requires strictly exceeding the TTL."""
    await cache.get()
    clock.advance(minutes=10)

    await cache.get()

    assert refresh.calls == 1


@pytest.mark.asyncio
async def test_concurrent_gets_are_coalesced(cache, refresh):
    """Test racing readers share one in-flight refresh."""
    refresh.gate = asyncio.Event()

    tasks = [asyncio.create_task(cache.get()) for _ in range(10)]
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert cache.state == CacheState.REFRESHING

    refresh.gate.set()
    results = await asyncio.gather(*tasks)

    assert refresh.calls == 1
    assert all(r is results[0] for r in results)


@pytest.mark.asyncio
async def test_force_refresh_joins_inflight(cache, refresh):
    """Test that force_refresh does not start a duplicate cycle."""
    refresh.gate = asyncio.Event()

    reader = asyncio.create_task(cache.get())
    await asyncio.sleep(0)
    forced = asyncio.create_task(cache.force_refresh())
    await asyncio.sleep(0)
    refresh.gate.set()

    assert await reader is await forced
    assert refresh.calls == 1


@pytest.mark.asyncio
async def test_force_refresh_when_fresh(cache, refresh):
    """Test force_refresh refreshes even a fresh cache."""
    first = await cache.get()
    second = await cache.force_refresh()

    assert refresh.calls == 2
    assert second is not first
    assert cache.snapshot is second


@pytest.mark.asyncio
async def test_failure_keeps_previous_snapshot(cache, refresh, clock, caplog):
    """Test that a failed refresh serves the last good snapshot."""
    good = await cache.get()
    clock.advance(minutes=11)
    refresh.error = RuntimeError("all feeds down")

    with caplog.at_level(logging.WARNING):
        snapshot = await cache.get()

    assert snapshot is good
    assert cache.snapshot is good
    assert "keeping snapshot" in caplog.text


@pytest.mark.asyncio
async def test_failure_on_empty_cache_propagates(cache, refresh):
    """Test that the first refresh failing raises to all joined callers."""
    refresh.gate = asyncio.Event()
    refresh.error = RuntimeError("boom")

    tasks = [asyncio.create_task(cache.get()) for _ in range(3)]
    await asyncio.sleep(0)
    refresh.gate.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)

    assert refresh.calls == 1
    assert all(isinstance(r, AggregationError) for r in results)
    assert cache.state == CacheState.EMPTY


@pytest.mark.asyncio
async def test_recovers_after_failed_first_refresh(cache, refresh):
    """Test that a later read retries after an initial failure."""
    refresh.error = RuntimeError("boom")
    with pytest.raises(AggregationError):
        await cache.get()

    refresh.error = None
    snapshot = await cache.get()

    assert refresh.calls == 2
    assert snapshot.items == ("item-2",)


@pytest.mark.asyncio
async def test_cancelled_caller_does_not_cancel_refresh(cache, refresh):
    """Test that the shared refresh survives a caller going away."""
    refresh.gate = asyncio.Event()

    impatient = asyncio.create_task(cache.get())
    await asyncio.sleep(0)
    impatient.cancel()
    with pytest.raises(asyncio.CancelledError):
        await impatient

    patient = asyncio.create_task(cache.get())
    await asyncio.sleep(0)
    refresh.gate.set()
    snapshot = await patient

    assert refresh.calls == 1
    assert snapshot.items == ("item-1",)
