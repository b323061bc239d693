"""Swap orchestrator.

Runs one user-triggered sequence: balance check, allowance assurance, swap
submission, confirmation and post-swap refresh. States:

    IDLE -> AWAITING_APPROVAL -> APPROVAL_SUBMITTED -> AWAITING_SWAP
    IDLE -> AWAITING_SWAP                                  (allowance sufficient)
    AWAITING_SWAP -> SWAP_SUBMITTED -> CONFIRMED(block) | FAILED(reason)
    any step -> FAILED(reason)

CONFIRMED and FAILED are terminal; the next request starts again from IDLE.
There are no automatic retries.
"""

import logging
from typing import Optional

from simpledex.amm import AmmClient
from simpledex.amounts import parse_positive
from simpledex.errors import (
    AlreadyInProgress,
    ApprovalFailed,
    DexError,
    InsufficientBalance,
    NotConnected,
    SwapSubmissionFailed,
)
from simpledex.models import AllowanceRecord, SwapIntent, TokenSide
from simpledex.pool import PoolTracker
from simpledex.quotes import QuoteSynchronizer
from simpledex.session import Session, SessionManager
from simpledex.status import Observable, SwapState, SwapStatus
from simpledex.tokens import TokenClient

logger = logging.getLogger(__name__)

# No slippage guard: swaps accept any output amount
MIN_OUTPUT = 0


class SwapOrchestrator(Observable[SwapStatus]):
    """Owns SwapStatus and sequences approval and swap transactions."""

    def __init__(
        self,
        sessions: SessionManager,
        tokens: dict[TokenSide, TokenClient],
        amm: AmmClient,
        decimals: int,
        pool: Optional[PoolTracker] = None,
        quotes: Optional[QuoteSynchronizer] = None,
        confirmation_timeout: Optional[float] = None,
    ):
        super().__init__()
        self.sessions = sessions
        self.tokens = tokens
        self.amm = amm
        self.decimals = decimals
        self.pool = pool
        self.quotes = quotes
        self.confirmation_timeout = confirmation_timeout
        self._status = SwapStatus.idle()
        self._in_flight = False

    @property
    def status(self) -> SwapStatus:
        return self._status

    @property
    def is_busy(self) -> bool:
        return self._in_flight or self._status.is_busy

    async def reset(self) -> None:
        """Return a terminal status to IDLE."""
        if self.is_busy:
            raise AlreadyInProgress()
        await self._clear_terminal()

    async def request_swap(self, input_token: TokenSide, raw_amount: str) -> SwapStatus:
        """Run a full swap sequence and return its terminal status.

        Raises:
            AlreadyInProgress: If a sequence is already running
            NotConnected: If there is no session
            InvalidAmount: If the amount is unparseable or not positive
            WrongNetwork: If the wallet is no longer on the target chain

        Failures after the preconditions are reported as ``FAILED`` status, not raised.
        """
        # Checked and claimed before the first suspension point
        if self.is_busy:
            raise AlreadyInProgress()

        session = self.sessions.session
        if session is None:
            await self._clear_terminal()
            raise NotConnected()

        try:
            amount = parse_positive(raw_amount, self.decimals)
        except DexError:
            await self._clear_terminal()
            raise

        self._in_flight = True
        try:
            await self._clear_terminal()
            # The wallet may have switched chains since connecting
            await self.sessions.require_network()
            intent = SwapIntent(
                input_token=input_token,
                raw_amount=raw_amount,
                amount=amount,
                recipient=session.account_address,
            )
            status = await self._run(session, intent)
        finally:
            self._in_flight = False

        if status.state is SwapState.CONFIRMED:
            await self._refresh_after_swap()
        return status

    async def _clear_terminal(self) -> None:
        if self._status.state is not SwapState.IDLE:
            await self._set_status(SwapStatus.idle())

    async def _run(self, session: Session, intent: SwapIntent) -> SwapStatus:
        token = self.tokens[intent.input_token]
        logger.info(
            f"Swap requested: {intent.raw_amount} ({intent.amount}) {token!r} "
            f"from {session.account_address}"
        )

        try:
            await self._ensure_balance(token, session, intent)
            await self._ensure_allowance(token, session, intent)
            return await self._swap(session, intent)
        except DexError as e:
            logger.warning(f"Swap sequence failed: {e}")
            return await self._set_status(SwapStatus.failed(e, tx_hash=self._status.tx_hash))
        except Exception as e:
            logger.exception("Unexpected error during swap sequence")
            return await self._set_status(SwapStatus.failed(e, tx_hash=self._status.tx_hash))

    async def _ensure_balance(self, token: TokenClient, session: Session, intent: SwapIntent) -> None:
        balance = await token.balance_of(session.account_address)
        if balance < intent.amount:
            raise InsufficientBalance(required=intent.amount, available=balance)

    async def _ensure_allowance(self, token: TokenClient, session: Session, intent: SwapIntent) -> None:
        record = AllowanceRecord(
            owner=session.account_address,
            spender=self.amm.address,
            amount=await token.allowance(session.account_address, self.amm.address),
        )
        if record.covers(intent.amount):
            logger.debug(f"Allowance {record.amount} covers {intent.amount}, skipping approval")
            return

        await self._set_status(SwapStatus(SwapState.AWAITING_APPROVAL))
        try:
            pending = await token.approve(session, self.amm.address, intent.amount)
        except Exception as e:
            raise ApprovalFailed(f"Approval submission failed: {e}") from e

        await self._set_status(SwapStatus(SwapState.APPROVAL_SUBMITTED, tx_hash=pending.tx_hash))
        try:
            await session.signer.await_confirmation(pending, self.confirmation_timeout)
        except Exception as e:
            raise ApprovalFailed(f"Approval did not confirm: {e}") from e

    async def _swap(self, session: Session, intent: SwapIntent) -> SwapStatus:
        await self._set_status(SwapStatus(SwapState.AWAITING_SWAP, tx_hash=self._status.tx_hash))
        try:
            pending = await self.amm.swap_exact_input(
                session, intent.input_token, intent.amount, MIN_OUTPUT, intent.recipient
            )
        except Exception as e:
            raise SwapSubmissionFailed(f"Swap submission failed: {e}") from e

        await self._set_status(SwapStatus(SwapState.SWAP_SUBMITTED, tx_hash=pending.tx_hash))
        receipt = await session.signer.await_confirmation(pending, self.confirmation_timeout)
        return await self._set_status(SwapStatus.confirmed(receipt.block_number, tx_hash=pending.tx_hash))

    async def _refresh_after_swap(self) -> None:
        if self.pool is not None:
            await self.pool.refresh()
        if self.quotes is not None:
            await self.quotes.refresh()

    async def _set_status(self, status: SwapStatus) -> SwapStatus:
        logger.debug(f"Swap status: {self._status.state.value} -> {status.state.value}")
        self._status = status
        await self._publish(status)
        return status
