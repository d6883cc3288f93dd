"""FastAPI application factory for the read-only trade state API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from trailtrade.dashboard.routes import api
from trailtrade.state_board import TradeStateBoard


def create_dashboard_app(board: TradeStateBoard | None = None, lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        board: State board to serve. main.py attaches it in the lifespan
            when omitted here.
        lifespan: Optional async context manager for application lifespan events.

    Returns:
        Configured FastAPI application with the JSON API routes.
    """
    app = FastAPI(
        title="Trailing Trade Indicators",
        lifespan=lifespan,
    )
    app.state.board = board
    app.include_router(api.router, prefix="/api")
    return app
