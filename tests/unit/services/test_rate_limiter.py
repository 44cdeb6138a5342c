"""Tests for RequestPacer."""

import pytest

from lptrack.services.rate_limiter import RequestPacer


class FakeClock:
    """Manual clock whose sleep advances time instead of waiting."""

    def __init__(self) -> None:
        self.now = 1000.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class TestRequestPacer:
    """Tests for request spacing."""

    @pytest.mark.asyncio
    async def test_first_request_not_delayed(self) -> None:
        clock = FakeClock()
        pacer = RequestPacer(delay_ms=100, clock=clock, sleep=clock.sleep)

        await pacer.acquire()

        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_back_to_back_requests_spaced(self) -> None:
        """
        Given: A 100 ms pacer
        When: Three requests are made without elapsed time
        Then: The second and third wait the full delay
        """
        clock = FakeClock()
        pacer = RequestPacer(delay_ms=100, clock=clock, sleep=clock.sleep)

        for _ in range(3):
            await pacer.acquire()

        assert clock.sleeps == pytest.approx([0.1, 0.1])

    @pytest.mark.asyncio
    async def test_only_remaining_delay_waited(self) -> None:
        clock = FakeClock()
        pacer = RequestPacer(delay_ms=100, clock=clock, sleep=clock.sleep)

        await pacer.acquire()
        clock.now += 0.04
        await pacer.acquire()

        assert clock.sleeps == pytest.approx([0.06])

    @pytest.mark.asyncio
    async def test_no_wait_when_enough_time_passed(self) -> None:
        clock = FakeClock()
        pacer = RequestPacer(delay_ms=100, clock=clock, sleep=clock.sleep)

        await pacer.acquire()
        clock.now += 5
        await pacer.acquire()

        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_zero_delay_never_sleeps(self) -> None:
        clock = FakeClock()
        pacer = RequestPacer(delay_ms=0, clock=clock, sleep=clock.sleep)

        await pacer.acquire()
        await pacer.acquire()

        assert clock.sleeps == []
