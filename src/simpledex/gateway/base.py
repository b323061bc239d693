"""Abstract ledger gateway interface.

A gateway is the wallet/ledger capability the engine is given: it reports the
network and account, performs read-only contract calls and submits
state-changing transactions on the account's behalf. Signing and key management
stay behind this interface.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingTransaction:
    """Handle for a submitted, not yet confirmed transaction."""

    tx_hash: str
    contract_address: str
    description: str = ""


@dataclass(frozen=True)
class TransactionReceipt:
    """Receipt of a mined transaction."""

    tx_hash: str
    block_number: int
    status: int = 1
    raw: dict = field(default_factory=dict, compare=False)

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class LedgerGateway(ABC):
    """Abstract base class for ledger access capabilities."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Gateway name identifier."""
        pass

    @abstractmethod
    async def get_network_identity(self) -> int:
        """Get the chain ID the capability is connected to."""
        pass

    @abstractmethod
    async def get_signing_identity(self) -> str:
        """Get the address of the account that signs submitted transactions."""
        pass

    @abstractmethod
    async def call(self, contract_address: str, calldata: bytes) -> bytes:
        """
        Perform a read-only contract call.

        Args:
            contract_address: Contract to call
            calldata: ABI-encoded request (selector + arguments)

        Returns:
            Raw ABI-encoded return data
        """
        pass

    @abstractmethod
    async def submit(
        self, contract_address: str, calldata: bytes, description: str = ""
    ) -> PendingTransaction:
        """
        Submit a state-changing call from the signing account.

        Returns:
            Pending transaction handle to pass to :meth:`await_confirmation`
        """
        pass

    @abstractmethod
    async def await_confirmation(
        self, pending: PendingTransaction, timeout: Optional[float] = None
    ) -> TransactionReceipt:
        """
        Wait until a submitted transaction is mined.

        Raises:
            TransactionReverted: If the transaction was mined with a failure status
            TransactionTimedOut: If no receipt appeared within the timeout
        """
        pass

    async def aclose(self) -> None:
        """Release any transport resources."""
        pass
