"""Pytest configuration and fixtures."""

import os

import pytest
from eth_utils import to_checksum_address

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "true"
os.environ["DRY_RUN"] = "true"

from simpledex.client import DexClient
from simpledex.config import Settings
from simpledex.gateway.dry_run import DryRunLedger, create_dry_run_ledger

CHAIN_ID = 11155111
DECIMALS = 6
UNIT = 10**DECIMALS

ACCOUNT = to_checksum_address("0x" + "ab" * 20)
AMM = to_checksum_address("0x" + "a1" * 20)
TOKEN0 = to_checksum_address("0x" + "c0" * 20)
TOKEN1 = to_checksum_address("0x" + "c1" * 20)

RESERVE0 = 1_000 * UNIT
RESERVE1 = 2_000 * UNIT
BALANCE = 10 * UNIT


@pytest.fixture
def settings() -> Settings:
    """Settings for a 6-decimal TKA/TKB pair on Sepolia."""
    return Settings(
        target_chain_id=CHAIN_ID,
        amm_address=AMM,
        token0_address=TOKEN0,
        token1_address=TOKEN1,
        token0_symbol="TKA",
        token1_symbol="TKB",
        token_decimals=DECIMALS,
        dry_run=True,
        dry_run_account=ACCOUNT,
        confirmation_timeout=5.0,
    )


@pytest.fixture
def ledger() -> DryRunLedger:
    """Simulated ledger with a funded account and a seeded pool."""
    return create_dry_run_ledger(
        chain_id=CHAIN_ID,
        account=ACCOUNT,
        amm_address=AMM,
        token0=(TOKEN0, "TKA"),
        token1=(TOKEN1, "TKB"),
        decimals=DECIMALS,
        reserve0=RESERVE0,
        reserve1=RESERVE1,
        balance0=BALANCE,
        balance1=BALANCE,
    )


@pytest.fixture
def client(settings: Settings, ledger: DryRunLedger) -> DexClient:
    """Client wired to the simulated ledger, not yet connected."""
    return DexClient(settings, wallet=ledger)


@pytest.fixture
async def connected_client(client: DexClient) -> DexClient:
    """Client with an established session."""
    await client.connect()
    return client
