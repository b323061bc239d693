"""Tests for the pool reserve tracker."""

import pytest
from conftest import AMM, RESERVE0, RESERVE1, UNIT

from simpledex.amm import AmmClient
from simpledex.models import PoolState, TokenSide
from simpledex.pool import PoolTracker


@pytest.fixture
def tracker(settings, ledger):
    return PoolTracker(AmmClient(ledger, AMM, settings.pair))


class TestPoolTracker:
    """Tests for PoolTracker."""

    @pytest.mark.asyncio
    async def test_initially_empty(self, tracker):
        assert tracker.state is None

    @pytest.mark.asyncio
    async def test_refresh(self, tracker):
        state = await tracker.refresh()

        assert state is tracker.state
        assert (state.reserve0, state.reserve1) == (RESERVE0, RESERVE1)
        assert state.pair.label == "TKA/TKB"
        assert state.oriented(TokenSide.TOKEN1) == (RESERVE1, RESERVE0)

    @pytest.mark.asyncio
    async def test_refresh_notifies(self, tracker):
        received = []
        tracker.subscribe(received.append)

        state = await tracker.refresh()

        assert received == [state]

    @pytest.mark.asyncio
    async def test_refresh_picks_up_changes(self, tracker, ledger):
        await tracker.refresh()
        ledger.pool.reserve0 += UNIT

        state = await tracker.refresh()

        assert state.reserve0 == RESERVE0 + UNIT

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_previous_state(self, tracker):
        """Test a read failure leaves the last snapshot in place."""
        previous = await tracker.refresh()
        received = []
        tracker.subscribe(received.append)
        tracker.amm.reader = None

        state = await tracker.refresh()

        assert state is previous
        assert tracker.state is previous
        assert received == []

    @pytest.mark.asyncio
    async def test_failed_first_refresh(self, settings, ledger):
        """Test a pool address with no contract leaves no state."""
        tracker = PoolTracker(AmmClient(ledger, "0x" + "99" * 20, settings.pair))

        assert await tracker.refresh() is None

    def test_staleness(self, tracker):
        state = PoolState(reserve0=1, reserve1=1, pair=tracker.amm.pair, fetched_at=0.0)
        assert state.is_stale(60)
