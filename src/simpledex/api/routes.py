"""Session, pool, quote and swap endpoints."""

import logging

from fastapi import APIRouter, HTTPException, Request

from simpledex.api.contracts import (
    PoolResponse,
    QuoteRequest,
    QuoteResponse,
    SessionResponse,
    SwapRequest,
    SwapResponse,
)
from simpledex.client import DexClient
from simpledex.errors import AlreadyInProgress, DexError
from simpledex.status import SwapState, SwapStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1")


def _client(request: Request) -> DexClient:
    return request.app.state.client


def _session_response(client: DexClient, error: str = None) -> SessionResponse:
    session = client.session
    return SessionResponse(
        success=error is None,
        connected=session is not None,
        chain_id=session.chain_id if session else None,
        account=session.account_address if session else None,
        message=client.status_message,
        error=error,
    )


def _swap_response(client: DexClient, status: SwapStatus, error: str = None) -> SwapResponse:
    reason = str(status.reason) if status.reason is not None else None
    return SwapResponse(
        success=status.state is SwapState.CONFIRMED,
        state=status.state,
        block_height=status.block_height,
        tx_hash=status.tx_hash,
        message=client.status_message,
        error=error or reason,
    )


@router.post("/session/connect", response_model=SessionResponse, tags=["Session"])
async def connect(request: Request) -> SessionResponse:
    """Connect the wallet and validate its network."""
    client = _client(request)
    try:
        await client.connect()
    except DexError as e:
        return _session_response(client, error=str(e))
    return _session_response(client)


@router.get("/session", response_model=SessionResponse, tags=["Session"])
async def get_session(request: Request) -> SessionResponse:
    """Get the current session."""
    return _session_response(_client(request))


@router.get("/pool", response_model=PoolResponse, tags=["Pool"])
async def get_pool(request: Request, refresh: bool = False) -> PoolResponse:
    """Get cached reserves, re-reading them when asked to or when the snapshot is stale."""
    client = _client(request)
    state = client.pool_state
    if refresh or (state is not None and state.is_stale(client.settings.pool_max_age_seconds)):
        state = await client.refresh()

    pair = client.settings.pair
    if state is None:
        return PoolResponse(
            success=False,
            pair=pair.label,
            amm_address=client.settings.amm_address,
            error="Reserves not loaded",
        )

    return PoolResponse(
        success=True,
        pair=pair.label,
        amm_address=client.settings.amm_address,
        reserve0=str(state.reserve0),
        reserve1=str(state.reserve1),
        reserve0_formatted=client.format_amount(state.reserve0),
        reserve1_formatted=client.format_amount(state.reserve1),
        fetched_at=state.fetched_at,
    )


@router.post("/quote", response_model=QuoteResponse, tags=["Quotes"])
async def get_quote(request: Request, body: QuoteRequest) -> QuoteResponse:
    """Quote an input amount. Invalid amounts yield an empty quote."""
    client = _client(request)
    result = await client.set_input(body.input_token, body.amount)
    return QuoteResponse(
        success=not result.is_empty,
        input_token=result.input_token,
        input_amount=str(result.input_amount),
        output_amount=None if result.is_empty else str(result.output_amount),
        output_formatted=None if result.is_empty else client.format_amount(result.output_amount),
        sequence=result.sequence,
    )


@router.post("/swap", response_model=SwapResponse, tags=["Swaps"])
async def swap(request: Request, body: SwapRequest) -> SwapResponse:
    """Run approval (if needed) and swap, returning the terminal status."""
    client = _client(request)
    if client.orchestrator.is_busy:
        raise HTTPException(status_code=409, detail=str(AlreadyInProgress()))

    try:
        status = await client.swap(body.input_token, body.amount)
    except AlreadyInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))
    except DexError as e:
        return _swap_response(client, client.swap_status, error=str(e))
    return _swap_response(client, status)


@router.get("/swap/status", response_model=SwapResponse, tags=["Swaps"])
async def swap_status(request: Request) -> SwapResponse:
    """Get the current swap status."""
    client = _client(request)
    return _swap_response(client, client.swap_status)
