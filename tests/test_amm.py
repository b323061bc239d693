"""Tests for the AMM pool client."""

import pytest
from conftest import ACCOUNT, AMM, CHAIN_ID, RESERVE0, RESERVE1, TOKEN0, TOKEN1, UNIT

from simpledex.amm import AmmClient
from simpledex.errors import NotConnected, NoWalletCapability
from simpledex.gateway.dry_run import constant_product_amount_out
from simpledex.models import TokenSide
from simpledex.session import Session


@pytest.fixture
def amm(settings, ledger):
    return AmmClient(ledger, AMM, settings.pair)


class TestConstantProduct:
    """Tests for the constant-product output formula."""

    def test_known_value(self):
        """Test 1 TKA into a 1000/2000 pool."""
        assert constant_product_amount_out(UNIT, RESERVE0, RESERVE1) == 1_992_013

    def test_formula(self):
        amount = 37 * UNIT
        expected = (amount * 997 * RESERVE1) // (RESERVE0 * 1000 + amount * 997)
        assert constant_product_amount_out(amount, RESERVE0, RESERVE1) == expected

    @pytest.mark.parametrize("amount", [1, UNIT, 500 * UNIT, 10**6 * UNIT])
    def test_output_below_spot_rate(self, amount):
        """Test the fee keeps output strictly under amount * reserve_out / reserve_in."""
        out = constant_product_amount_out(amount, RESERVE0, RESERVE1)
        assert out * RESERVE0 < amount * RESERVE1

    def test_output_never_drains_pool(self):
        assert constant_product_amount_out(10**30, RESERVE0, RESERVE1) < RESERVE1

    @pytest.mark.parametrize("args", [(0, 1, 1), (1, 0, 1), (1, 1, 0), (-5, 1, 1)])
    def test_degenerate_inputs(self, args):
        assert constant_product_amount_out(*args) == 0


class TestAmmClient:
    """Tests for AMM contract reads and submissions."""

    @pytest.mark.asyncio
    async def test_pair_tokens(self, amm):
        assert await amm.token0() == TOKEN0
        assert await amm.token1() == TOKEN1

    @pytest.mark.asyncio
    async def test_reserves_oriented_by_input(self, amm):
        """Test reserves come back as (reserve_in, reserve_out)."""
        assert await amm.get_reserves(TokenSide.TOKEN0) == (RESERVE0, RESERVE1)
        assert await amm.get_reserves(TokenSide.TOKEN1) == (RESERVE1, RESERVE0)

    @pytest.mark.asyncio
    async def test_get_amount_out_token0(self, amm):
        assert await amm.get_amount_out(TokenSide.TOKEN0, UNIT) == 1_992_013

    @pytest.mark.asyncio
    async def test_get_amount_out_token1(self, amm):
        """Test selling token1 uses the reversed reserves."""
        expected = constant_product_amount_out(UNIT, RESERVE1, RESERVE0)
        assert await amm.get_amount_out(TokenSide.TOKEN1, UNIT) == expected

    @pytest.mark.asyncio
    async def test_get_amount_out_zero(self, amm):
        assert await amm.get_amount_out(TokenSide.TOKEN0, 0) == 0

    @pytest.mark.asyncio
    async def test_swap_requires_session(self, amm, ledger):
        with pytest.raises(NotConnected):
            await amm.swap_exact_input(None, TokenSide.TOKEN0, UNIT, 0, ACCOUNT)
        assert ledger.submissions == []

    @pytest.mark.asyncio
    async def test_swap_submission(self, amm, ledger):
        """Test swapExactInput is sent to the pool with the input token address."""
        session = Session(chain_id=CHAIN_ID, account_address=ACCOUNT, signer=ledger)

        pending = await amm.swap_exact_input(session, TokenSide.TOKEN1, UNIT, 5, ACCOUNT)

        assert pending.tx_hash.startswith("0x")
        assert ledger.submissions == [(AMM, "swapExactInput", (TOKEN1, UNIT, 5, ACCOUNT))]

    @pytest.mark.asyncio
    async def test_no_reader(self, settings):
        amm = AmmClient(None, AMM, settings.pair)
        with pytest.raises(NoWalletCapability):
            await amm.token0()
