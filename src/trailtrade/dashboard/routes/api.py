"""JSON API endpoints exposing the latest published trade states."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Request

from trailtrade.models import TradeState, to_jsonable

log = structlog.get_logger(__name__)

router = APIRouter()


def _serialize_state(state: TradeState) -> dict[str, Any]:
    """Convert a TradeState to JSON, adding the display precision of its prices."""
    data = to_jsonable(state)
    if state.symbol_info is not None:
        data["symbol_info"]["price_precision"] = state.symbol_info.price_precision
    return data


@router.get("/trade-states")
async def list_trade_states(request: Request) -> dict[str, Any]:
    """Latest trade state of every symbol evaluated so far, keyed by symbol."""
    states = await request.app.state.board.get_all()
    return {symbol: _serialize_state(state) for symbol, state in sorted(states.items())}


@router.get("/trade-states/{symbol}")
async def get_trade_state(symbol: str, request: Request) -> dict[str, Any]:
    """Latest trade state of one symbol."""
    state = await request.app.state.board.get(symbol.upper())
    if state is None:
        log.debug("trade_state_not_found", symbol=symbol)
        raise HTTPException(status_code=404, detail=f"No trade state for {symbol}")
    return _serialize_state(state)
