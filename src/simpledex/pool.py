"""Local view of the pool reserves."""

import logging
from typing import Optional

from simpledex.amm import AmmClient
from simpledex.models import PoolState, TokenSide
from simpledex.status import Observable

logger = logging.getLogger(__name__)


class PoolTracker(Observable[PoolState]):
    """Owns the cached PoolState and refreshes it from the AMM contract."""

    def __init__(self, amm: AmmClient):
        super().__init__()
        self.amm = amm
        self._state: Optional[PoolState] = None

    @property
    def state(self) -> Optional[PoolState]:
        return self._state

    async def refresh(self) -> Optional[PoolState]:
        """Re-read reserves.

        On a read failure the previous (possibly stale) state is kept and returned.
        """
        try:
            reserve0, reserve1 = await self.amm.get_reserves(TokenSide.TOKEN0)
        except Exception as e:
            logger.warning(f"Reserve refresh failed, keeping previous state: {e}")
            return self._state

        self._state = PoolState(reserve0=reserve0, reserve1=reserve1, pair=self.amm.pair)
        logger.debug(f"Reserves {self.amm.pair.label}: {reserve0} / {reserve1}")
        await self._publish(self._state)
        return self._state
