"""Request and response contracts for the HTTP API."""

from typing import Optional

from pydantic import BaseModel, Field

from simpledex.models import TokenSide
from simpledex.status import SwapState


class SessionResponse(BaseModel):
    """Current wallet session."""

    success: bool = Field(..., description="Whether the request succeeded")
    connected: bool = Field(default=False, description="Whether a session exists")
    chain_id: Optional[int] = Field(None, description="Connected chain ID")
    account: Optional[str] = Field(None, description="Connected account address")
    message: str = Field(default="", description="Status line")
    error: Optional[str] = Field(None, description="Error message if failed")


class PoolResponse(BaseModel):
    """Cached pool reserves."""

    success: bool
    pair: str = Field(..., description="Pair label, e.g. TKA/TKB")
    amm_address: str
    reserve0: Optional[str] = Field(None, description="token0 reserve in base units")
    reserve1: Optional[str] = Field(None, description="token1 reserve in base units")
    reserve0_formatted: Optional[str] = None
    reserve1_formatted: Optional[str] = None
    fetched_at: Optional[float] = Field(None, description="Snapshot timestamp")
    error: Optional[str] = None


class QuoteRequest(BaseModel):
    """Request for an output estimate."""

    input_token: TokenSide = Field(default=TokenSide.TOKEN0, description="Token being sold")
    amount: str = Field(default="", description="Input amount as a decimal string")


class QuoteResponse(BaseModel):
    """Output estimate for the latest quote request."""

    success: bool
    input_token: TokenSide
    input_amount: str = Field(..., description="Parsed input in base units")
    output_amount: Optional[str] = Field(None, description="Estimated output in base units")
    output_formatted: Optional[str] = Field(None, description="Estimated output as decimal string")
    sequence: int = Field(..., description="Sequence number of the request this result answers")


class SwapRequest(BaseModel):
    """Request to swap an exact input amount."""

    input_token: TokenSide = Field(default=TokenSide.TOKEN0, description="Token being sold")
    amount: str = Field(..., description="Input amount as a decimal string")


class SwapResponse(BaseModel):
    """Swap status."""

    success: bool = Field(..., description="True once the swap is confirmed")
    state: SwapState
    block_height: Optional[int] = None
    tx_hash: Optional[str] = None
    message: str = Field(default="", description="Status line")
    error: Optional[str] = Field(None, description="Failure reason")
