"""Tests for per-key operation coalescing."""

import asyncio

import pytest

from cacher.singleflight import SingleFlight


class TestSingleFlight:
    """Test SingleFlight class."""

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_one_run(self):
        """Concurrent callers for one key run the operation once."""
        flights = SingleFlight()
        release = asyncio.Event()
        runs = 0

        async def operation():
            nonlocal runs
            runs += 1
            await release.wait()
            return "result"

        waiters = [asyncio.create_task(flights.do("key", operation)) for _ in range(5)]
        await asyncio.sleep(0)
        assert flights.in_flight() == 1

        release.set()
        results = await asyncio.gather(*waiters)

        assert runs == 1
        assert results == ["result"] * 5
        assert flights.in_flight() == 0

    @pytest.mark.asyncio
    async def test_different_keys_run_independently(self):
        """Operations for different keys do not coalesce."""
        flights = SingleFlight()
        calls = []

        async def operation(key):
            calls.append(key)
            await asyncio.sleep(0)
            return key

        results = await asyncio.gather(
            flights.do("a", lambda: operation("a")),
            flights.do("b", lambda: operation("b")),
        )

        assert sorted(calls) == ["a", "b"]
        assert results == ["a", "b"]

    @pytest.mark.asyncio
    async def test_exception_delivered_to_every_waiter(self):
        """All waiters see the operation's exception."""
        flights = SingleFlight()
        release = asyncio.Event()

        async def operation():
            await release.wait()
            raise RuntimeError("boom")

        waiters = [asyncio.create_task(flights.do("key", operation)) for _ in range(3)]
        await asyncio.sleep(0)
        release.set()

        results = await asyncio.gather(*waiters, return_exceptions=True)

        assert len(results) == 3
        assert all(isinstance(r, RuntimeError) for r in results)
        assert flights.in_flight() == 0

    @pytest.mark.asyncio
    async def test_sequential_calls_run_again(self):
        """A finished operation is not reused by later callers."""
        flights = SingleFlight()
        runs = 0

        async def operation():
            nonlocal runs
            runs += 1
            return runs

        assert await flights.do("key", operation) == 1
        assert await flights.do("key", operation) == 2

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_others(self):
        """Cancelling one waiter leaves the shared operation running."""
        flights = SingleFlight()
        release = asyncio.Event()

        async def operation():
            await release.wait()
            return "done"

        first = asyncio.create_task(flights.do("key", operation))
        second = asyncio.create_task(flights.do("key", operation))
        await asyncio.sleep(0)

        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first

        release.set()
        assert await second == "done"

    @pytest.mark.asyncio
    async def test_last_waiter_leaving_cancels_operation(self):
        """The operation is cancelled once nobody is waiting for it."""
        flights = SingleFlight()
        started = asyncio.Event()
        cancelled = asyncio.Event()

        async def operation():
            started.set()
            try:
                await asyncio.sleep(60)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        waiter = asyncio.create_task(flights.do("key", operation))
        await started.wait()

        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        await asyncio.wait_for(cancelled.wait(), timeout=1.0)
        assert flights.in_flight() == 0
