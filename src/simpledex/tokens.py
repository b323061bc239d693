"""ERC-20 token service client.

Reads go through any available reader gateway; ``approve`` requires a session
and is submitted through the session's signer.
"""

import logging
from typing import Optional

from eth_utils import to_checksum_address

from simpledex import abi
from simpledex.errors import NotConnected, NoWalletCapability
from simpledex.gateway.base import LedgerGateway, PendingTransaction
from simpledex.session import Session

logger = logging.getLogger(__name__)


class TokenClient:
    """Client for a single ERC-20 token contract."""

    def __init__(self, reader: Optional[LedgerGateway], address: str, decimals: int, symbol: str = ""):
        self.reader = reader
        self.address = to_checksum_address(address)
        self.decimals = decimals
        self.symbol_hint = symbol

    def __repr__(self) -> str:
        return f"TokenClient({self.symbol_hint or self.address})"

    async def _read(self, function: abi.ContractFunction, *args):
        if self.reader is None:
            raise NoWalletCapability("No ledger reader available")
        data = await self.reader.call(self.address, function.encode_call(*args))
        return function.decode_result(data)

    async def symbol(self) -> str:
        return await self._read(abi.ERC20_SYMBOL)

    async def decimals_on_chain(self) -> int:
        return await self._read(abi.ERC20_DECIMALS)

    async def balance_of(self, owner: str) -> int:
        return await self._read(abi.ERC20_BALANCE_OF, owner)

    async def allowance(self, owner: str, spender: str) -> int:
        return await self._read(abi.ERC20_ALLOWANCE, owner, spender)

    async def approve(self, session: Optional[Session], spender: str, amount: int) -> PendingTransaction:
        """Submit ``approve(spender, amount)`` from the session account.

        The returned transaction must be confirmed before relying on the allowance.
        """
        if session is None:
            raise NotConnected()

        logger.info(f"Approving {amount} {self.symbol_hint or self.address} for {spender}")
        return await session.signer.submit(
            self.address,
            abi.ERC20_APPROVE.encode_call(spender, amount),
            description=f"approve {self.symbol_hint or self.address}",
        )
