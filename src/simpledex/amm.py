"""AMM pool service client.

Output amounts are computed by the contract (0.30% fee, constant product);
this client only encodes the calls and decodes the results.
"""

import asyncio
import logging
from typing import Optional

from eth_utils import to_checksum_address

from simpledex import abi
from simpledex.errors import NotConnected, NoWalletCapability
from simpledex.gateway.base import LedgerGateway, PendingTransaction
from simpledex.models import PairDescriptor, TokenSide
from simpledex.session import Session

logger = logging.getLogger(__name__)


class AmmClient:
    """Client for the configured two-token AMM pool."""

    def __init__(self, reader: Optional[LedgerGateway], address: str, pair: PairDescriptor):
        self.reader = reader
        self.address = to_checksum_address(address)
        self.pair = pair

    def token_address(self, side: TokenSide) -> str:
        return self.pair.token0 if side is TokenSide.TOKEN0 else self.pair.token1

    async def _read(self, function: abi.ContractFunction, *args):
        if self.reader is None:
            raise NoWalletCapability("No ledger reader available")
        data = await self.reader.call(self.address, function.encode_call(*args))
        return function.decode_result(data)

    async def token0(self) -> str:
        return await self._read(abi.AMM_TOKEN0)

    async def token1(self) -> str:
        return await self._read(abi.AMM_TOKEN1)

    async def get_reserves(self, input_token: TokenSide = TokenSide.TOKEN0) -> tuple[int, int]:
        """Get (reserve_in, reserve_out) for a swap selling ``input_token``."""
        reserve0, reserve1 = await asyncio.gather(
            self._read(abi.AMM_RESERVE0),
            self._read(abi.AMM_RESERVE1),
        )
        if input_token is TokenSide.TOKEN0:
            return reserve0, reserve1
        return reserve1, reserve0

    async def get_amount_out(self, input_token: TokenSide, amount_in: int) -> int:
        return await self._read(abi.AMM_GET_AMOUNT_OUT, self.token_address(input_token), amount_in)

    async def swap_exact_input(
        self,
        session: Optional[Session],
        input_token: TokenSide,
        amount_in: int,
        min_output: int,
        recipient: str,
    ) -> PendingTransaction:
        """Submit ``swapExactInput`` from the session account."""
        if session is None:
            raise NotConnected()

        token_in = self.token_address(input_token)
        logger.info(
            f"Swapping {amount_in} {self.pair.symbol(input_token)} -> "
            f"{self.pair.symbol(input_token.other)} (min out {min_output}, to {recipient})"
        )
        return await session.signer.submit(
            self.address,
            abi.AMM_SWAP_EXACT_INPUT.encode_call(token_in, amount_in, min_output, recipient),
            description=f"swap {self.pair.symbol(input_token)} -> {self.pair.symbol(input_token.other)}",
        )
