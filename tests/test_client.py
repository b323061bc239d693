"""Tests for the DexClient facade."""

import logging

import pytest
from conftest import ACCOUNT, CHAIN_ID, RESERVE0, RESERVE1, UNIT

from simpledex.client import DexClient
from simpledex.errors import NotConnected, NoWalletCapability, WrongNetwork
from simpledex.models import TokenSide


class TestConnect:
    """Tests for connecting through the client."""

    @pytest.mark.asyncio
    async def test_connect_loads_pool(self, client):
        session = await client.connect()

        assert session.account_address == ACCOUNT
        assert client.status_message == "Connected."
        assert (client.pool_state.reserve0, client.pool_state.reserve1) == (RESERVE0, RESERVE1)

    @pytest.mark.asyncio
    async def test_connect_requotes_pending_input(self, client):
        """Test input typed before connecting is quoted again on connect."""
        await client.set_input(TokenSide.TOKEN0, "1")
        sequence = client.quote.sequence

        await client.connect()

        assert client.quote.sequence == sequence + 1
        assert client.quote.output_amount == 1_992_013

    @pytest.mark.asyncio
    async def test_wrong_network(self, client, ledger):
        ledger.chain_id = 1

        with pytest.raises(WrongNetwork):
            await client.connect()

        assert client.session is None
        assert client.status_message == f"Wrong network. Please switch to chainId {CHAIN_ID}."

    @pytest.mark.asyncio
    async def test_no_wallet(self, settings):
        client = DexClient(settings)

        with pytest.raises(NoWalletCapability):
            await client.connect()

        assert client.status_message.startswith("No wallet found")

    @pytest.mark.asyncio
    async def test_disconnect_message(self, connected_client):
        await connected_client.sessions.disconnect()

        assert connected_client.session is None
        assert connected_client.status_message == "Disconnected."

    @pytest.mark.asyncio
    async def test_decimals_mismatch_warns(self, settings, ledger, caplog):
        """Test tokens reporting other decimals than configured are logged."""
        client = DexClient(settings.model_copy(update={"token_decimals": 18}), wallet=ledger)

        with caplog.at_level(logging.WARNING, logger="simpledex.client"):
            await client.connect()

        assert "reports 6 decimals, configured 18" in caplog.text


class TestReadOnly:
    """Tests for a client with a reader but no wallet."""

    @pytest.mark.asyncio
    async def test_quotes_without_session(self, settings, ledger):
        client = DexClient(settings, reader=ledger)

        result = await client.set_input(TokenSide.TOKEN0, "1")

        assert client.session is None
        assert result.output_amount == 1_992_013

    @pytest.mark.asyncio
    async def test_swap_needs_session(self, settings, ledger):
        client = DexClient(settings, reader=ledger)
        await client.set_input(TokenSide.TOKEN0, "1")

        with pytest.raises(NotConnected):
            await client.swap()


class TestInput:
    """Tests for input handling."""

    @pytest.mark.asyncio
    async def test_set_input_keeps_other_field(self, client):
        await client.set_input(TokenSide.TOKEN1, "3")
        result = await client.set_input(amount="4")

        assert client.input_token is TokenSide.TOKEN1
        assert client.input_amount == "4"
        assert result.input_token is TokenSide.TOKEN1
        assert result.input_amount == 4 * UNIT

    def test_format_amount(self, client):
        assert client.format_amount(1_500_000) == "1.5"
        assert client.format_amount(None) == "-"

    @pytest.mark.asyncio
    async def test_aclose(self, client):
        await client.aclose()
