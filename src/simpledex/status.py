"""Swap status model and listener notification.

Components that own UI-observable state (session, pool, quote, swap status)
publish every change to subscribed callbacks instead of exposing shared globals.
"""

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SwapState(str, Enum):
    """Swap orchestrator state machine states."""

    IDLE = "idle"
    AWAITING_APPROVAL = "awaiting_approval"
    APPROVAL_SUBMITTED = "approval_submitted"
    AWAITING_SWAP = "awaiting_swap"
    SWAP_SUBMITTED = "swap_submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"


TERMINAL_STATES = frozenset({SwapState.CONFIRMED, SwapState.FAILED})


@dataclass(frozen=True)
class SwapStatus:
    """Current swap status.

    ``block_height`` is set for CONFIRMED, ``reason`` for FAILED. ``tx_hash`` is the
    last transaction submitted in the sequence (approval or swap).
    """

    state: SwapState = SwapState.IDLE
    block_height: Optional[int] = None
    reason: Optional[Exception] = None
    tx_hash: Optional[str] = None

    @classmethod
    def idle(cls) -> "SwapStatus":
        return cls()

    @classmethod
    def confirmed(cls, block_height: int, tx_hash: Optional[str] = None) -> "SwapStatus":
        return cls(SwapState.CONFIRMED, block_height=block_height, tx_hash=tx_hash)

    @classmethod
    def failed(cls, reason: Exception, tx_hash: Optional[str] = None) -> "SwapStatus":
        return cls(SwapState.FAILED, reason=reason, tx_hash=tx_hash)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def is_busy(self) -> bool:
        """True while a sequence is between Idle and a terminal state."""
        return self.state is not SwapState.IDLE and not self.is_terminal

    def describe(self) -> str:
        """Human-readable status line."""
        if self.state is SwapState.IDLE:
            return ""
        if self.state in (SwapState.AWAITING_APPROVAL, SwapState.APPROVAL_SUBMITTED):
            return "Approving allowance..."
        if self.state is SwapState.AWAITING_SWAP:
            return "Preparing swap..."
        if self.state is SwapState.SWAP_SUBMITTED:
            return "Sending swap..."
        if self.state is SwapState.CONFIRMED:
            return f"Swap confirmed in block {self.block_height}"
        return f"Swap failed: {self.reason}"


class Observable(Generic[T]):
    """Holds listeners and publishes values to them.

    Callbacks may be plain functions or coroutine functions. A failing listener is
    logged and does not affect the publisher or other listeners.
    """

    def __init__(self):
        self._listeners: list[Callable[[T], Any]] = []

    def subscribe(self, callback: Callable[[T], Any]) -> Callable[[], None]:
        """Register a listener. Returns a function that removes it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    async def _publish(self, value: T) -> None:
        for callback in list(self._listeners):
            try:
                result = callback(value)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Listener {callback!r} failed")
