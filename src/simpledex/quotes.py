"""Quote synchronizer.

Every input change issues a quote request. Requests are numbered at issuance
and a response is applied only if no newer request has been issued since, so a
slow stale read can never overwrite a fresher quote. Nothing is cancelled;
superseded responses are dropped.
"""

import asyncio
import logging
from typing import Optional

from simpledex.amm import AmmClient
from simpledex.amounts import to_fixed_point
from simpledex.errors import InvalidAmount
from simpledex.models import QuoteResult, TokenSide
from simpledex.status import Observable

logger = logging.getLogger(__name__)


class QuoteSynchronizer(Observable[QuoteResult]):
    """Derives output estimates for the latest (input token, amount) pair.

    This is a read-only component: it needs no session.
    """

    def __init__(self, amm: AmmClient, decimals: int, debounce_seconds: float = 0.0):
        super().__init__()
        self.amm = amm
        self.decimals = decimals
        self.debounce_seconds = debounce_seconds
        self._issued = 0
        self._result = QuoteResult.empty()
        self._last_request: Optional[tuple[TokenSide, str]] = None

    @property
    def result(self) -> QuoteResult:
        return self._result

    @property
    def issued(self) -> int:
        """Sequence number of the most recently issued request."""
        return self._issued

    async def request_quote(self, input_token: TokenSide, raw_amount: str) -> QuoteResult:
        """Request a quote and return the current result once this request settles.

        Parse failures, zero amounts and read errors produce an empty quote; none of
        them raise.
        """
        self._issued += 1
        sequence = self._issued
        self._last_request = (input_token, raw_amount)

        try:
            amount = to_fixed_point(raw_amount, self.decimals)
        except InvalidAmount as e:
            logger.debug(f"Quote #{sequence}: {e}")
            amount = 0

        if amount == 0:
            await self._apply(QuoteResult.empty(input_token, sequence))
            return self._result

        if self.debounce_seconds:
            await asyncio.sleep(self.debounce_seconds)
            if sequence != self._issued:
                logger.debug(f"Quote #{sequence} superseded during debounce")
                return self._result

        try:
            output = await self.amm.get_amount_out(input_token, amount)
        except Exception as e:
            logger.warning(f"Quote #{sequence} read failed: {e}")
            output = None

        await self._apply(
            QuoteResult(input_token=input_token, input_amount=amount, output_amount=output, sequence=sequence)
        )
        return self._result

    async def refresh(self) -> QuoteResult:
        """Re-issue the last requested quote, if any."""
        if self._last_request is None:
            return self._result
        return await self.request_quote(*self._last_request)

    async def _apply(self, result: QuoteResult) -> None:
        if result.sequence != self._issued:
            logger.debug(f"Dropping stale quote #{result.sequence} (latest #{self._issued})")
            return
        self._result = result
        await self._publish(result)
