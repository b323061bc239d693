"""Ledger gateways.

Gateways:
- JsonRpcGateway: HTTP JSON-RPC node or wallet endpoint
- DryRunLedger: in-memory simulated pool and tokens
"""

from simpledex.gateway.base import LedgerGateway, PendingTransaction, TransactionReceipt
from simpledex.gateway.dry_run import DryRunLedger, SimulatedPool, SimulatedToken, create_dry_run_ledger
from simpledex.gateway.factory import create_gateway
from simpledex.gateway.jsonrpc import JsonRpcGateway

__all__ = [
    # Base classes
    "LedgerGateway",
    "PendingTransaction",
    "TransactionReceipt",
    # Gateways
    "JsonRpcGateway",
    "DryRunLedger",
    "SimulatedPool",
    "SimulatedToken",
    # Factory functions
    "create_dry_run_ledger",
    "create_gateway",
]
