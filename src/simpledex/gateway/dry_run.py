"""Dry-run ledger for simulated swaps.

Keeps a constant-product pool and two ERC-20 tokens in memory and answers the
same calldata a real node would. Transactions are applied when their
confirmation is awaited, one block per transaction.
"""

import asyncio
import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from eth_utils import to_checksum_address

from simpledex import abi
from simpledex.errors import RpcError, TransactionReverted, TransactionTimedOut
from simpledex.gateway.base import LedgerGateway, PendingTransaction, TransactionReceipt

logger = logging.getLogger(__name__)

# 0.30% fee expressed in parts of 1000
FEE_NUMERATOR = 997
FEE_DENOMINATOR = 1000


def constant_product_amount_out(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    """Output of a constant-product swap with the fee taken from the input side."""
    if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
        return 0
    amount_in_with_fee = amount_in * FEE_NUMERATOR
    return (amount_in_with_fee * reserve_out) // (reserve_in * FEE_DENOMINATOR + amount_in_with_fee)


class ExecutionReverted(Exception):
    """Raised inside the simulated contracts when a call would revert."""

    pass


@dataclass
class SimulatedToken:
    """In-memory ERC-20 token."""

    address: str
    symbol: str
    decimals: int = 18
    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[tuple[str, str], int] = field(default_factory=dict)

    def __post_init__(self):
        self.address = to_checksum_address(self.address)
        self.balances = {to_checksum_address(k): v for k, v in self.balances.items()}

    def balance_of(self, owner: str) -> int:
        return self.balances.get(to_checksum_address(owner), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((to_checksum_address(owner), to_checksum_address(spender)), 0)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        self.allowances[(to_checksum_address(owner), to_checksum_address(spender))] = amount

    def mint(self, owner: str, amount: int) -> None:
        owner = to_checksum_address(owner)
        self.balances[owner] = self.balances.get(owner, 0) + amount

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None:
        owner = to_checksum_address(owner)
        if self.allowance(owner, spender) < amount:
            raise ExecutionReverted(f"{self.symbol}: insufficient allowance")
        if self.balance_of(owner) < amount:
            raise ExecutionReverted(f"{self.symbol}: transfer amount exceeds balance")
        self.approve(owner, spender, self.allowance(owner, spender) - amount)
        self.balances[owner] -= amount
        self.mint(recipient, amount)

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        sender = to_checksum_address(sender)
        if self.balance_of(sender) < amount:
            raise ExecutionReverted(f"{self.symbol}: transfer amount exceeds balance")
        self.balances[sender] -= amount
        self.mint(recipient, amount)


@dataclass
class SimulatedPool:
    """In-memory constant-product AMM holding ``token0``/``token1`` reserves."""

    address: str
    token0: SimulatedToken
    token1: SimulatedToken
    reserve0: int = 0
    reserve1: int = 0

    def __post_init__(self):
        self.address = to_checksum_address(self.address)
        self.token0.mint(self.address, self.reserve0)
        self.token1.mint(self.address, self.reserve1)

    def _sides(self, token_in: str) -> tuple[SimulatedToken, SimulatedToken]:
        token_in = to_checksum_address(token_in)
        if token_in == self.token0.address:
            return self.token0, self.token1
        if token_in == self.token1.address:
            return self.token1, self.token0
        raise ExecutionReverted("invalid tokenIn")

    def _reserves(self, token_in: str) -> tuple[int, int]:
        source, _ = self._sides(token_in)
        if source is self.token0:
            return self.reserve0, self.reserve1
        return self.reserve1, self.reserve0

    def get_amount_out(self, token_in: str, amount_in: int) -> int:
        reserve_in, reserve_out = self._reserves(token_in)
        return constant_product_amount_out(amount_in, reserve_in, reserve_out)

    def swap_exact_input(self, sender: str, token_in: str, amount_in: int, min_out: int, to: str) -> int:
        if amount_in <= 0:
            raise ExecutionReverted("amountIn must be positive")
        source, target = self._sides(token_in)
        amount_out = self.get_amount_out(token_in, amount_in)
        if amount_out < min_out:
            raise ExecutionReverted("slippage")
        if amount_out <= 0:
            raise ExecutionReverted("insufficient output")

        source.transfer_from(self.address, sender, self.address, amount_in)
        target.transfer(self.address, to, amount_out)

        if source is self.token0:
            self.reserve0 += amount_in
            self.reserve1 -= amount_out
        else:
            self.reserve1 += amount_in
            self.reserve0 -= amount_out
        return amount_out


@dataclass
class _QueuedTransaction:
    sender: str
    contract_address: str
    function: abi.ContractFunction
    args: tuple


class DryRunLedger(LedgerGateway):
    """Simulated ledger exposing one pool, its two tokens and a wallet account.

    Failure injection for tests:
    - ``reject_functions``: submission raises ``RpcError`` (wallet refused)
    - ``revert_functions``: transaction reverts when confirmed
    - ``timeout_functions``: confirmation raises ``TransactionTimedOut``

    ``read_delay`` and ``confirmation_delay`` make calls suspend like network round trips.
    """

    def __init__(
        self,
        chain_id: int,
        account: str,
        pool: SimulatedPool,
        block_number: int = 1,
        confirmation_delay: float = 0.0,
        read_delay: float = 0.0,
    ):
        self.chain_id = chain_id
        self.account = to_checksum_address(account)
        self.pool = pool
        self.block_number = block_number
        self.confirmation_delay = confirmation_delay
        self.read_delay = read_delay

        self.reject_functions: set[str] = set()
        self.revert_functions: set[str] = set()
        self.timeout_functions: set[str] = set()

        # (contract_address, function name) of every read, in order
        self.reads: list[tuple[str, str]] = []
        # (contract_address, function name, args) of every submission, in order
        self.submissions: list[tuple[str, str, tuple]] = []

        self._queued: dict[str, _QueuedTransaction] = {}
        self._receipts: dict[str, TransactionReceipt] = {}
        self._nonce = 0

    @property
    def name(self) -> str:
        return "dry_run"

    @property
    def tokens(self) -> dict[str, SimulatedToken]:
        return {self.pool.token0.address: self.pool.token0, self.pool.token1.address: self.pool.token1}

    def _resolve(self, contract_address: str, calldata: bytes) -> tuple[abi.ContractFunction, tuple]:
        address = to_checksum_address(contract_address)
        if address == self.pool.address:
            functions = abi.AMM_FUNCTIONS
        elif address in self.tokens:
            functions = abi.ERC20_FUNCTIONS
        else:
            raise RpcError(f"No contract at {contract_address}", code=-32000)

        try:
            function = abi.function_for(calldata, functions)
        except ValueError as e:
            raise RpcError(str(e), code=-32000) from e
        return function, function.decode_call(calldata)

    async def get_network_identity(self) -> int:
        return self.chain_id

    async def get_signing_identity(self) -> str:
        return self.account

    async def call(self, contract_address: str, calldata: bytes) -> bytes:
        function, args = self._resolve(contract_address, calldata)
        self.reads.append((to_checksum_address(contract_address), function.name))
        if function.mutates:
            raise RpcError(f"{function.name} is not a view function", code=-32000)

        if self.read_delay:
            await asyncio.sleep(self.read_delay)

        try:
            value = self._execute_view(contract_address, function, args)
        except ExecutionReverted as e:
            raise RpcError(f"execution reverted: {e}", code=3) from e
        return function.encode_result(value)

    def _execute_view(self, contract_address: str, function: abi.ContractFunction, args: tuple):
        address = to_checksum_address(contract_address)
        if address == self.pool.address:
            handlers = {
                "token0": lambda: self.pool.token0.address,
                "token1": lambda: self.pool.token1.address,
                "reserve0": lambda: self.pool.reserve0,
                "reserve1": lambda: self.pool.reserve1,
                "getAmountOut": lambda: self.pool.get_amount_out(*args),
            }
        else:
            token = self.tokens[address]
            handlers = {
                "symbol": lambda: token.symbol,
                "decimals": lambda: token.decimals,
                "balanceOf": lambda: token.balance_of(*args),
                "allowance": lambda: token.allowance(*args),
            }
        return handlers[function.name]()

    async def submit(
        self, contract_address: str, calldata: bytes, description: str = ""
    ) -> PendingTransaction:
        function, args = self._resolve(contract_address, calldata)
        if not function.mutates:
            raise RpcError(f"{function.name} is a view function", code=-32000)
        if function.name in self.reject_functions:
            raise RpcError("User rejected the request.", code=4001)

        self._nonce += 1
        tx_data = f"{self.account}:{contract_address}:{calldata.hex()}:{self._nonce}:{time.time()}"
        tx_hash = "0x" + hashlib.sha256(tx_data.encode()).hexdigest()

        self._queued[tx_hash] = _QueuedTransaction(self.account, contract_address, function, args)
        self.submissions.append((to_checksum_address(contract_address), function.name, args))
        logger.info(f"[DRY RUN] Submitted {function.name} to {contract_address}: {tx_hash}")
        return PendingTransaction(tx_hash=tx_hash, contract_address=contract_address, description=description)

    async def await_confirmation(
        self, pending: PendingTransaction, timeout: Optional[float] = None
    ) -> TransactionReceipt:
        if pending.tx_hash in self._receipts:
            return self._receipts[pending.tx_hash]

        queued = self._queued.pop(pending.tx_hash, None)
        if queued is None:
            raise RpcError(f"Unknown transaction {pending.tx_hash}")

        if self.confirmation_delay:
            await asyncio.sleep(self.confirmation_delay)

        if queued.function.name in self.timeout_functions:
            raise TransactionTimedOut(pending.tx_hash, timeout or 0.0)

        self.block_number += 1
        try:
            if queued.function.name in self.revert_functions:
                raise ExecutionReverted("forced revert")
            self._execute(queued)
        except ExecutionReverted as e:
            logger.info(f"[DRY RUN] {queued.function.name} reverted in block {self.block_number}: {e}")
            self._receipts[pending.tx_hash] = TransactionReceipt(pending.tx_hash, self.block_number, status=0)
            raise TransactionReverted(pending.tx_hash, str(e))

        receipt = TransactionReceipt(pending.tx_hash, self.block_number, status=1)
        self._receipts[pending.tx_hash] = receipt
        logger.info(f"[DRY RUN] {queued.function.name} confirmed in block {self.block_number}")
        return receipt

    def _execute(self, queued: _QueuedTransaction) -> None:
        address = to_checksum_address(queued.contract_address)
        if queued.function.name == "approve":
            spender, amount = queued.args
            self.tokens[address].approve(queued.sender, spender, amount)
        elif queued.function.name == "swapExactInput":
            token_in, amount_in, min_out, to = queued.args
            self.pool.swap_exact_input(queued.sender, token_in, amount_in, min_out, to)
        else:
            raise ExecutionReverted(f"unsupported function {queued.function.name}")


def create_dry_run_ledger(
    chain_id: int,
    account: str,
    amm_address: str,
    token0: tuple[str, str],
    token1: tuple[str, str],
    decimals: int = 18,
    reserve0: Optional[int] = None,
    reserve1: Optional[int] = None,
    balance0: Optional[int] = None,
    balance1: Optional[int] = None,
) -> DryRunLedger:
    """Create a seeded dry-run ledger.

    Args:
        token0: (address, symbol) of token0
        token1: (address, symbol) of token1
        reserve0/reserve1: Pool reserves in base units (default 1,000,000 tokens)
        balance0/balance1: Account balances in base units (default 1,000 tokens)
    """
    unit = 10**decimals
    account = to_checksum_address(account)
    t0 = SimulatedToken(address=token0[0], symbol=token0[1], decimals=decimals)
    t1 = SimulatedToken(address=token1[0], symbol=token1[1], decimals=decimals)
    t0.mint(account, 1_000 * unit if balance0 is None else balance0)
    t1.mint(account, 1_000 * unit if balance1 is None else balance1)

    pool = SimulatedPool(
        address=amm_address,
        token0=t0,
        token1=t1,
        reserve0=1_000_000 * unit if reserve0 is None else reserve0,
        reserve1=1_000_000 * unit if reserve1 is None else reserve1,
    )
    return DryRunLedger(chain_id=chain_id, account=account, pool=pool)
