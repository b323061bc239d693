"""JSON-RPC ledger gateway.

Talks to an Ethereum-style node or wallet endpoint that manages the signing
account itself (``eth_sendTransaction``), the way a browser wallet does.
"""

import asyncio
import itertools
import logging
from typing import Any, Optional

import httpx

from simpledex.errors import NoWalletCapability, RpcError, TransactionReverted, TransactionTimedOut
from simpledex.gateway.base import LedgerGateway, PendingTransaction, TransactionReceipt

logger = logging.getLogger(__name__)


class JsonRpcGateway(LedgerGateway):
    """Ledger gateway backed by an HTTP JSON-RPC endpoint."""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        poll_interval: float = 2.0,
        confirmation_timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize gateway.

        Args:
            rpc_url: JSON-RPC endpoint
            timeout: Timeout for a single HTTP request
            poll_interval: Seconds between receipt polls
            confirmation_timeout: Default seconds to wait for a receipt
            transport: Optional httpx transport (used by tests)
        """
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.confirmation_timeout = confirmation_timeout
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None
        self._ids = itertools.count(1)
        self._account: Optional[str] = None

    @property
    def name(self) -> str:
        return "jsonrpc"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._http_client

    async def _rpc(self, method: str, params: list) -> Any:
        """Send one JSON-RPC request and return its result."""
        client = await self._get_client()
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }

        try:
            response = await client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"{method} request to {self.rpc_url} failed: {e}")
            raise RpcError(f"{method} failed: {e}") from e
        except ValueError as e:
            raise RpcError(f"{method} returned invalid JSON") from e

        if not isinstance(data, dict):
            raise RpcError(f"{method} returned a non-object response")

        if "error" in data:
            error = data["error"]
            logger.warning(f"{method} returned error: {error}")
            if isinstance(error, dict):
                raise RpcError(error.get("message", "unknown error"), code=error.get("code"))
            raise RpcError(str(error or "unknown error"))

        return data.get("result")

    async def get_network_identity(self) -> int:
        result = await self._rpc("eth_chainId", [])
        return _quantity(result, "eth_chainId")

    async def get_signing_identity(self) -> str:
        accounts = await self._rpc("eth_accounts", [])
        if not accounts:
            # Wallet endpoints only reveal accounts after an explicit request
            accounts = await self._rpc("eth_requestAccounts", [])
        if not accounts:
            raise NoWalletCapability("Wallet exposes no accounts")
        self._account = accounts[0]
        return self._account

    async def call(self, contract_address: str, calldata: bytes) -> bytes:
        result = await self._rpc(
            "eth_call",
            [{"to": contract_address, "data": "0x" + calldata.hex()}, "latest"],
        )
        if not isinstance(result, str) or result in ("", "0x"):
            raise RpcError(f"eth_call to {contract_address} returned no data")
        try:
            return bytes.fromhex(result[2:])
        except ValueError as e:
            raise RpcError(f"eth_call to {contract_address} returned malformed data") from e

    async def submit(
        self, contract_address: str, calldata: bytes, description: str = ""
    ) -> PendingTransaction:
        sender = self._account or await self.get_signing_identity()
        tx_hash = await self._rpc(
            "eth_sendTransaction",
            [{"from": sender, "to": contract_address, "data": "0x" + calldata.hex()}],
        )
        logger.info(f"Submitted {description or 'transaction'}: {tx_hash}")
        return PendingTransaction(tx_hash=tx_hash, contract_address=contract_address, description=description)

    async def await_confirmation(
        self, pending: PendingTransaction, timeout: Optional[float] = None
    ) -> TransactionReceipt:
        timeout = self.confirmation_timeout if timeout is None else timeout
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while True:
            receipt = await self._rpc("eth_getTransactionReceipt", [pending.tx_hash])
            if receipt is not None:
                if not isinstance(receipt, dict):
                    raise RpcError(f"Malformed receipt for {pending.tx_hash}")
                result = TransactionReceipt(
                    tx_hash=pending.tx_hash,
                    block_number=_quantity(receipt.get("blockNumber", "0x0"), "blockNumber"),
                    status=_quantity(receipt.get("status", "0x0"), "status"),
                    raw=receipt,
                )
                if not result.succeeded:
                    raise TransactionReverted(pending.tx_hash)
                logger.info(f"Transaction {pending.tx_hash} confirmed in block {result.block_number}")
                return result

            if loop.time() >= deadline:
                raise TransactionTimedOut(pending.tx_hash, timeout)

            await asyncio.sleep(self.poll_interval)

    async def aclose(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None


def _quantity(value: Any, field: str) -> int:
    """Parse a hex-encoded JSON-RPC quantity."""
    try:
        return int(value, 16)
    except (TypeError, ValueError) as e:
        raise RpcError(f"Invalid {field} quantity: {value!r}") from e
