"""Client facade wiring session, pool, quote and swap components together.

This is the engine behind a single-pair swap screen: connect the wallet, keep
reserves and the quote current while the user types, and run the swap.
"""

import logging
from typing import Optional

from simpledex.amm import AmmClient
from simpledex.amounts import to_decimal_string
from simpledex.config import Settings, get_settings
from simpledex.errors import DexError, NoWalletCapability, WrongNetwork
from simpledex.gateway.base import LedgerGateway
from simpledex.models import PoolState, QuoteResult, TokenSide
from simpledex.orchestrator import SwapOrchestrator
from simpledex.pool import PoolTracker
from simpledex.quotes import QuoteSynchronizer
from simpledex.session import Session, SessionManager
from simpledex.status import SwapStatus
from simpledex.tokens import TokenClient

logger = logging.getLogger(__name__)


class DexClient:
    """Swap client for the configured AMM pair.

    Args:
        settings: Pair and network configuration
        wallet: Ledger capability with a signing account (None if no wallet is available)
        reader: Gateway for read-only calls; defaults to ``wallet``
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        wallet: Optional[LedgerGateway] = None,
        reader: Optional[LedgerGateway] = None,
    ):
        self.settings = settings or get_settings()
        self.wallet = wallet
        self.reader = reader or wallet
        decimals = self.settings.token_decimals

        self.sessions = SessionManager(wallet, self.settings.target_chain_id)
        self.amm = AmmClient(self.reader, self.settings.amm_address, self.settings.pair)
        self.tokens = {
            side: TokenClient(
                self.reader,
                self.settings.token_address(side),
                decimals,
                symbol=self.settings.token_symbol(side),
            )
            for side in TokenSide
        }
        self.pool = PoolTracker(self.amm)
        self.quotes = QuoteSynchronizer(self.amm, decimals, self.settings.quote_debounce_seconds)
        self.orchestrator = SwapOrchestrator(
            self.sessions,
            self.tokens,
            self.amm,
            decimals,
            pool=self.pool,
            quotes=self.quotes,
            confirmation_timeout=self.settings.confirmation_timeout,
        )

        self.input_token = TokenSide.TOKEN0
        self.input_amount = ""
        self.status_message = ""

        self.sessions.subscribe(self._on_session)
        self.orchestrator.subscribe(self._on_swap_status)

    # ======================
    # State accessors
    # ======================

    @property
    def session(self) -> Optional[Session]:
        return self.sessions.session

    @property
    def pool_state(self) -> Optional[PoolState]:
        return self.pool.state

    @property
    def quote(self) -> QuoteResult:
        return self.quotes.result

    @property
    def swap_status(self) -> SwapStatus:
        return self.orchestrator.status

    def format_amount(self, amount: Optional[int]) -> str:
        """Format base units for display ("-" when absent)."""
        if amount is None:
            return "-"
        return to_decimal_string(amount, self.settings.token_decimals)

    # ======================
    # Operations
    # ======================

    async def connect(self) -> Session:
        """Connect the wallet; refreshes reserves and quote on success."""
        try:
            return await self.sessions.connect()
        except WrongNetwork as e:
            self.status_message = f"Wrong network. Please switch to chainId {e.expected}."
            raise
        except NoWalletCapability as e:
            self.status_message = str(e)
            raise
        except DexError as e:
            self.status_message = f"Connect error: {e}"
            raise

    async def refresh(self) -> Optional[PoolState]:
        """Re-read reserves, then re-quote the current input."""
        state = await self.pool.refresh()
        await self.quotes.refresh()
        return state

    async def set_input(
        self, input_token: Optional[TokenSide] = None, amount: Optional[str] = None
    ) -> QuoteResult:
        """Update the swap input and re-quote it."""
        if input_token is not None:
            self.input_token = input_token
        if amount is not None:
            self.input_amount = amount
        return await self.quotes.request_quote(self.input_token, self.input_amount)

    async def swap(
        self, input_token: Optional[TokenSide] = None, amount: Optional[str] = None
    ) -> SwapStatus:
        """Swap an amount; omitted arguments fall back to the current input.

        Explicit arguments do not touch the shared input, so a concurrent
        ``set_input`` cannot change what this call submits.
        """
        input_token = self.input_token if input_token is None else input_token
        amount = self.input_amount if amount is None else amount
        try:
            return await self.orchestrator.request_swap(input_token, amount)
        except WrongNetwork as e:
            self.status_message = f"Wrong network. Please switch to chainId {e.expected}."
            raise
        except DexError as e:
            self.status_message = f"Swap failed: {e}"
            raise

    async def aclose(self) -> None:
        closed = set()
        for gateway in (self.wallet, self.reader):
            if gateway is not None and id(gateway) not in closed:
                closed.add(id(gateway))
                await gateway.aclose()

    # ======================
    # Listeners
    # ======================

    async def _on_session(self, session: Optional[Session]) -> None:
        if session is None:
            self.status_message = "Disconnected."
            return

        self.status_message = "Connected."
        await self._verify_pair()
        await self.refresh()

    async def _on_swap_status(self, status: SwapStatus) -> None:
        message = status.describe()
        if message:
            self.status_message = message

    async def _verify_pair(self) -> None:
        """Warn when the pool or tokens disagree with configuration."""
        try:
            token0, token1 = await self.amm.token0(), await self.amm.token1()
            if (token0, token1) != (self.amm.pair.token0, self.amm.pair.token1):
                logger.warning(
                    f"Pool tokens {token0}/{token1} do not match configured "
                    f"{self.amm.pair.token0}/{self.amm.pair.token1}"
                )
            for token in self.tokens.values():
                decimals = await token.decimals_on_chain()
                if decimals != self.settings.token_decimals:
                    logger.warning(
                        f"{token!r} reports {decimals} decimals, configured {self.settings.token_decimals}"
                    )
        except Exception as e:
            logger.warning(f"Could not verify pool configuration: {e}")
