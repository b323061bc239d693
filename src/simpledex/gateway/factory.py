"""Factory for ledger gateways.

Creates a gateway based on configuration:
- dry_run: in-memory simulated ledger seeded with the configured pair
- otherwise: JSON-RPC gateway against ``rpc_url``
"""

import logging
from typing import Optional

from simpledex.config import Settings, get_settings
from simpledex.gateway.base import LedgerGateway
from simpledex.gateway.dry_run import create_dry_run_ledger
from simpledex.gateway.jsonrpc import JsonRpcGateway

logger = logging.getLogger(__name__)


def create_gateway(settings: Optional[Settings] = None) -> LedgerGateway:
    """Create the ledger gateway selected by settings."""
    settings = settings or get_settings()

    if settings.dry_run:
        logger.info("Using dry-run ledger (no real transactions)")
        return create_dry_run_ledger(
            chain_id=settings.target_chain_id,
            account=settings.dry_run_account,
            amm_address=settings.amm_address,
            token0=(settings.token0_address, settings.token0_symbol),
            token1=(settings.token1_address, settings.token1_symbol),
            decimals=settings.token_decimals,
        )

    logger.info(f"Using JSON-RPC ledger at {settings.rpc_url}")
    return JsonRpcGateway(
        rpc_url=settings.rpc_url,
        timeout=settings.rpc_timeout,
        poll_interval=settings.confirmation_poll_interval,
        confirmation_timeout=settings.confirmation_timeout,
    )
