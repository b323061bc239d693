"""Tests for the quote synchronizer."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from conftest import AMM, RESERVE0, RESERVE1, UNIT

from simpledex.amm import AmmClient
from simpledex.gateway.dry_run import constant_product_amount_out
from simpledex.models import TokenSide
from simpledex.quotes import QuoteSynchronizer


class ControlledAmm:
    """AMM stub whose reads complete only when the test resolves them."""

    def __init__(self):
        self.pending: list[tuple[int, asyncio.Future]] = []

    async def get_amount_out(self, input_token, amount_in):
        future = asyncio.get_running_loop().create_future()
        self.pending.append((amount_in, future))
        return await future


async def wait_for(predicate, attempts: int = 100):
    """Yield to the event loop until ``predicate`` holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


@pytest.fixture
def quotes(settings, ledger):
    return QuoteSynchronizer(AmmClient(ledger, AMM, settings.pair), settings.token_decimals)


def amount_out_reads(ledger) -> int:
    return sum(1 for _, name in ledger.reads if name == "getAmountOut")


class TestRequestQuote:
    """Tests for single quote requests."""

    @pytest.mark.asyncio
    async def test_initially_empty(self, quotes):
        assert quotes.result.is_empty
        assert quotes.issued == 0

    @pytest.mark.asyncio
    async def test_quote_token0(self, quotes):
        result = await quotes.request_quote(TokenSide.TOKEN0, "1")

        assert result.input_token is TokenSide.TOKEN0
        assert result.input_amount == UNIT
        assert result.output_amount == 1_992_013
        assert result.sequence == 1

    @pytest.mark.asyncio
    async def test_quote_token1(self, quotes):
        result = await quotes.request_quote(TokenSide.TOKEN1, "2.5")

        assert result.output_amount == constant_product_amount_out(2_500_000, RESERVE1, RESERVE0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["", "0", "0.0000001", "abc", "-1"])
    async def test_zero_or_invalid_input_skips_read(self, quotes, ledger, raw):
        """Test zero and unparseable input give an empty quote without a contract read."""
        result = await quotes.request_quote(TokenSide.TOKEN0, raw)

        assert result.is_empty
        assert result.input_amount == 0
        assert result.sequence == 1
        assert amount_out_reads(ledger) == 0

    @pytest.mark.asyncio
    async def test_clearing_input_empties_quote(self, quotes):
        await quotes.request_quote(TokenSide.TOKEN0, "1")
        result = await quotes.request_quote(TokenSide.TOKEN0, "")

        assert result.is_empty
        assert quotes.result is result

    @pytest.mark.asyncio
    async def test_read_error_gives_empty_quote(self, settings):
        amm = AsyncMock()
        amm.get_amount_out.side_effect = RuntimeError("node unreachable")
        quotes = QuoteSynchronizer(amm, settings.token_decimals)

        result = await quotes.request_quote(TokenSide.TOKEN0, "1")

        amm.get_amount_out.assert_awaited_once_with(TokenSide.TOKEN0, UNIT)
        assert result.is_empty
        assert result.input_amount == UNIT
        assert result.sequence == 1

    @pytest.mark.asyncio
    async def test_subscribers_notified(self, quotes):
        received = []
        quotes.subscribe(received.append)

        result = await quotes.request_quote(TokenSide.TOKEN0, "1")

        assert received == [result]


class TestOrdering:
    """Tests for last-writer-wins quote ordering."""

    @pytest.mark.asyncio
    async def test_stale_response_is_dropped(self, settings):
        """Test a slow earlier read cannot overwrite a newer quote."""
        amm = ControlledAmm()
        quotes = QuoteSynchronizer(amm, settings.token_decimals)
        received = []
        quotes.subscribe(received.append)

        first = asyncio.create_task(quotes.request_quote(TokenSide.TOKEN0, "1"))
        await wait_for(lambda: len(amm.pending) == 1)
        second = asyncio.create_task(quotes.request_quote(TokenSide.TOKEN0, "2"))
        await wait_for(lambda: len(amm.pending) == 2)

        # Second request answers first
        amm.pending[1][1].set_result(200)
        await second
        amm.pending[0][1].set_result(100)
        await first

        assert quotes.result.output_amount == 200
        assert quotes.result.input_amount == 2 * UNIT
        assert quotes.result.sequence == 2
        assert [r.output_amount for r in received] == [200]

    @pytest.mark.asyncio
    async def test_in_order_responses_end_on_latest(self, settings):
        amm = ControlledAmm()
        quotes = QuoteSynchronizer(amm, settings.token_decimals)

        first = asyncio.create_task(quotes.request_quote(TokenSide.TOKEN0, "1"))
        await wait_for(lambda: len(amm.pending) == 1)
        second = asyncio.create_task(quotes.request_quote(TokenSide.TOKEN0, "2"))
        await wait_for(lambda: len(amm.pending) == 2)

        amm.pending[0][1].set_result(100)
        await first
        amm.pending[1][1].set_result(200)
        await second

        assert quotes.result.output_amount == 200
        assert quotes.result.sequence == 2

    @pytest.mark.asyncio
    async def test_empty_input_supersedes_pending_read(self, settings):
        """Test clearing the input while a read is in flight keeps the quote empty."""
        amm = ControlledAmm()
        quotes = QuoteSynchronizer(amm, settings.token_decimals)

        pending = asyncio.create_task(quotes.request_quote(TokenSide.TOKEN0, "1"))
        await wait_for(lambda: len(amm.pending) == 1)
        await quotes.request_quote(TokenSide.TOKEN0, "0")

        amm.pending[0][1].set_result(100)
        await pending

        assert quotes.result.is_empty
        assert quotes.result.sequence == 2


class TestDebounce:
    """Tests for debounced quote reads."""

    @pytest.mark.asyncio
    async def test_rapid_input_collapses_to_one_read(self, settings, ledger):
        quotes = QuoteSynchronizer(
            AmmClient(ledger, AMM, settings.pair), settings.token_decimals, debounce_seconds=0.05
        )

        await asyncio.gather(
            quotes.request_quote(TokenSide.TOKEN0, "1"),
            quotes.request_quote(TokenSide.TOKEN0, "2"),
            quotes.request_quote(TokenSide.TOKEN0, "3"),
        )

        assert amount_out_reads(ledger) == 1
        assert quotes.result.input_amount == 3 * UNIT
        assert quotes.result.sequence == 3


class TestRefresh:
    """Tests for re-quoting the last input."""

    @pytest.mark.asyncio
    async def test_refresh_without_request(self, quotes, ledger):
        result = await quotes.refresh()

        assert result.is_empty
        assert ledger.reads == []

    @pytest.mark.asyncio
    async def test_refresh_uses_new_reserves(self, quotes, ledger):
        """Test refresh re-issues the last request against current reserves."""
        before = await quotes.request_quote(TokenSide.TOKEN0, "1")
        ledger.pool.reserve1 = RESERVE1 * 2

        after = await quotes.refresh()

        assert after.sequence == before.sequence + 1
        assert after.output_amount == constant_product_amount_out(UNIT, RESERVE0, RESERVE1 * 2)
        assert after.output_amount > before.output_amount
