"""Error taxonomy for session, quote and swap operations.

Read-path failures (quotes, reserve refresh) are logged and degrade to empty or
stale values. Write-path failures (approval, swap) end the orchestrator sequence
in ``Failed(reason)`` with one of these exceptions as the reason.
"""

from typing import Optional


class DexError(Exception):
    """Base class for all simpledex errors."""

    pass


class NoWalletCapability(DexError):
    """No ledger-access capability (wallet provider) is available."""

    def __init__(self, message: str = "No wallet found. Install or enable a wallet provider."):
        super().__init__(message)


class WrongNetwork(DexError):
    """The wallet is connected to a different chain than the configured target."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Wrong network. Please switch to chainId {expected} (connected to {actual}).")


class NotConnected(DexError):
    """A write operation was attempted without an active session."""

    def __init__(self, message: str = "Connect wallet first"):
        super().__init__(message)


class InvalidAmount(DexError):
    """Amount is unparseable, negative, non-positive where required, or out of range."""

    pass


class InsufficientBalance(DexError):
    """Token balance does not cover the requested input amount."""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(f"Insufficient token balance: have {available}, need {required}")


class AlreadyInProgress(DexError):
    """A swap sequence is already running."""

    def __init__(self, message: str = "A swap is already in progress"):
        super().__init__(message)


class ApprovalFailed(DexError):
    """Token approval could not be submitted or did not confirm."""

    pass


class SwapSubmissionFailed(DexError):
    """The swap transaction could not be submitted."""

    pass


class TransactionReverted(DexError):
    """A submitted transaction was mined but reverted."""

    def __init__(self, tx_hash: str, reason: Optional[str] = None):
        self.tx_hash = tx_hash
        self.reason = reason
        message = f"Transaction {tx_hash} reverted"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class TransactionTimedOut(DexError):
    """A submitted transaction was not confirmed in time."""

    def __init__(self, tx_hash: str, timeout: float):
        self.tx_hash = tx_hash
        self.timeout = timeout
        super().__init__(f"Transaction {tx_hash} not confirmed after {timeout}s")


class RpcError(DexError):
    """The ledger gateway returned an error or could not be reached."""

    def __init__(self, message: str, code: Optional[int] = None):
        self.code = code
        super().__init__(message if code is None else f"RPC error {code}: {message}")
