"""Tests for the failure-counting resilience policy."""

import pytest

from repairline.exceptions import ServiceUnavailableError
from repairline.resilience import PolicyState, ResiliencePolicy


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


async def _fail():
    raise ConnectionError("boom")


async def _ok():
    return "ok"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def policy(clock):
    return ResiliencePolicy("store", failure_threshold=3, cooldown_sec=30.0, clock=clock)


class TestResiliencePolicy:
    @pytest.mark.asyncio
    async def test_success_passes_through(self, policy):
        assert await policy.call(_ok) == "ok"
        assert policy.state == PolicyState.CLOSED

    @pytest.mark.asyncio
    async def test_opens_after_threshold(self, policy):
        for _ in range(3):
            with pytest.raises(ConnectionError):
                await policy.call(_fail)
        assert policy.state == PolicyState.OPEN
        with pytest.raises(ServiceUnavailableError, match="store"):
            await policy.call(_ok)

    @pytest.mark.asyncio
    async def test_stays_closed_below_threshold(self, policy):
        for _ in range(2):
            with pytest.raises(ConnectionError):
                await policy.call(_fail)
        assert policy.state == PolicyState.CLOSED
        assert policy.failure_count == 2

    @pytest.mark.asyncio
    async def test_success_resets_count(self, policy):
        with pytest.raises(ConnectionError):
            await policy.call(_fail)
        await policy.call(_ok)
        assert policy.failure_count == 0

    @pytest.mark.asyncio
    async def test_trial_call_after_cooldown_closes(self, policy, clock):
        for _ in range(3):
            with pytest.raises(ConnectionError):
                await policy.call(_fail)
        clock.now += 31
        assert await policy.call(_ok) == "ok"
        assert policy.state == PolicyState.CLOSED

    @pytest.mark.asyncio
    async def test_failed_trial_reopens(self, policy, clock):
        for _ in range(3):
            with pytest.raises(ConnectionError):
                await policy.call(_fail)
        clock.now += 31
        with pytest.raises(ConnectionError):
            await policy.call(_fail)
        assert policy.state == PolicyState.OPEN
        with pytest.raises(ServiceUnavailableError):
            await policy.call(_ok)

    def test_invalid_threshold(self):
        with pytest.raises(ValueError):
            ResiliencePolicy("x", failure_threshold=0)

    def test_policies_are_independent(self, clock):
        a = ResiliencePolicy("a", failure_threshold=1, clock=clock)
        b = ResiliencePolicy("b", failure_threshold=1, clock=clock)
        a.record_failure()
        assert a.state == PolicyState.OPEN
        assert b.state == PolicyState.CLOSED
