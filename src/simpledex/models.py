"""Data model shared by the session, pool, quote and swap components."""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class TokenSide(str, Enum):
    """Which side of the configured pair is being sold."""

    TOKEN0 = "token0"
    TOKEN1 = "token1"

    @property
    def other(self) -> "TokenSide":
        return TokenSide.TOKEN1 if self is TokenSide.TOKEN0 else TokenSide.TOKEN0


@dataclass(frozen=True)
class PairDescriptor:
    """The two tokens traded by the pool."""

    token0: str
    token1: str
    symbol0: str
    symbol1: str

    def symbol(self, side: TokenSide) -> str:
        return self.symbol0 if side is TokenSide.TOKEN0 else self.symbol1

    @property
    def label(self) -> str:
        return f"{self.symbol0}/{self.symbol1}"


@dataclass(frozen=True)
class PoolState:
    """Cached pool reserves.

    The contract is authoritative; this is a snapshot taken at ``fetched_at``.
    """

    reserve0: int
    reserve1: int
    pair: PairDescriptor
    fetched_at: float = field(default_factory=time.time)

    def oriented(self, input_token: TokenSide) -> tuple[int, int]:
        """Get (reserve_in, reserve_out) for a swap selling ``input_token``."""
        if input_token is TokenSide.TOKEN0:
            return self.reserve0, self.reserve1
        return self.reserve1, self.reserve0

    def is_stale(self, max_age_seconds: float) -> bool:
        """Check if the snapshot is older than ``max_age_seconds``."""
        return time.time() - self.fetched_at > max_age_seconds


@dataclass(frozen=True)
class SwapIntent:
    """A user's request to sell ``amount`` of ``input_token``."""

    input_token: TokenSide
    raw_amount: str
    amount: int  # fixed-point, token base units
    recipient: str


@dataclass(frozen=True)
class QuoteResult:
    """Estimated output for a quote request.

    ``output_amount`` is None for an empty quote (zero, unparseable or failed read).
    """

    input_token: TokenSide
    input_amount: int = 0
    output_amount: Optional[int] = None
    sequence: int = 0

    @property
    def is_empty(self) -> bool:
        return self.output_amount is None

    @classmethod
    def empty(cls, input_token: TokenSide = TokenSide.TOKEN0, sequence: int = 0) -> "QuoteResult":
        return cls(input_token=input_token, sequence=sequence)


@dataclass(frozen=True)
class AllowanceRecord:
    """How much ``spender`` may move on behalf of ``owner``."""

    owner: str
    spender: str
    amount: int

    def covers(self, required: int) -> bool:
        return self.amount >= required
