"""Wallet session management.

A session exists only while the wallet is on the configured chain. Other
components read the current session but never create or modify it.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from eth_utils import to_checksum_address

from simpledex.errors import NoWalletCapability, WrongNetwork
from simpledex.gateway.base import LedgerGateway
from simpledex.status import Observable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """An authenticated, network-validated wallet binding."""

    chain_id: int
    account_address: str
    signer: LedgerGateway


class SessionManager(Observable[Optional[Session]]):
    """Establishes and validates the active session.

    Subscribers receive the new session after a successful connect and ``None``
    whenever the session is destroyed.
    """

    def __init__(self, capability: Optional[LedgerGateway], target_chain_id: int):
        super().__init__()
        self.capability = capability
        self.target_chain_id = target_chain_id
        self._session: Optional[Session] = None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    def is_connected(self) -> bool:
        return self._session is not None

    async def connect(self) -> Session:
        """Connect the wallet and create a session.

        Raises:
            NoWalletCapability: If no wallet capability was injected
            WrongNetwork: If the wallet is on a different chain
        """
        if self.capability is None:
            raise NoWalletCapability()

        chain_id = await self._check_network()

        account = to_checksum_address(await self.capability.get_signing_identity())
        self._session = Session(chain_id=chain_id, account_address=account, signer=self.capability)
        logger.info(f"Connected {account} on chain {chain_id} via {self.capability.name}")

        await self._publish(self._session)
        return self._session

    async def validate_network(self) -> bool:
        """Re-check the wallet network, destroying the session on mismatch."""
        if self.capability is None:
            return False
        try:
            await self._check_network()
        except WrongNetwork:
            return False
        return True

    async def require_network(self) -> int:
        """Re-check the wallet network before a write.

        Raises:
            NoWalletCapability: If no wallet capability was injected
            WrongNetwork: If the wallet switched chains (the session is destroyed)
        """
        if self.capability is None:
            raise NoWalletCapability()
        return await self._check_network()

    async def disconnect(self) -> None:
        if self._session is not None:
            logger.info(f"Disconnected {self._session.account_address}")
            self._session = None
            await self._publish(None)

    async def _check_network(self) -> int:
        chain_id = await self.capability.get_network_identity()
        if chain_id != self.target_chain_id:
            logger.warning(f"Wrong network: expected chain {self.target_chain_id}, got {chain_id}")
            await self.disconnect()
            raise WrongNetwork(self.target_chain_id, chain_id)
        return chain_id
