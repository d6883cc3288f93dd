"""Periodic scheduler driving the indicator pipeline.

Each tick:
  1. Fetch account info once (shared read-only by all symbols)
  2. For every configured symbol, concurrently: fetch open orders, build a
     fresh TradeState, run the pipeline, publish the result
  3. Sleep until the next tick

A symbol whose previous evaluation is still running is skipped, so two
evaluations of the same symbol never overlap. Failures affect only the
failing symbol; its previously published state stays on the board.
Upstream failures are not retried within a tick, the next tick tries again.
"""

from __future__ import annotations

import asyncio

import structlog

from trailtrade.config import AppSettings
from trailtrade.exceptions import (
    InsufficientDataError,
    MalformedCandleError,
    MalformedSymbolInfoError,
    TrailTradeError,
    UpstreamUnavailableError,
)
from trailtrade.exchange.client import ExchangeClient
from trailtrade.indicators.pipeline import IndicatorPipeline
from trailtrade.logging import get_logger
from trailtrade.models import AccountInfo, TradeState
from trailtrade.state_board import TradeStateBoard

logger = get_logger(__name__)


class TradeScheduler:
    """Runs the pipeline for every configured symbol on a fixed interval.

    Args:
        settings: Application settings (symbols, interval, per-symbol config).
        exchange: Source of account info and open orders.
        pipeline: The per-symbol indicator pipeline.
        board: Where successful evaluations are published.
    """

    def __init__(
        self,
        settings: AppSettings,
        exchange: ExchangeClient,
        pipeline: IndicatorPipeline,
        board: TradeStateBoard,
    ) -> None:
        self._settings = settings
        self._exchange = exchange
        self._pipeline = pipeline
        self._board = board
        self._symbol_locks: dict[str, asyncio.Lock] = {}
        self._running = False
        self._tick_count = 0

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Run ticks until stop() is called."""
        if self._running:
            logger.warning("scheduler_already_running")
            return
        self._running = True
        logger.info(
            "scheduler_started",
            symbols=self._settings.scheduler.symbols,
            interval=self._settings.scheduler.interval,
        )
        try:
            while self._running:
                try:
                    await self.run_tick()
                except asyncio.CancelledError:
                    break
                except Exception as e:
                    logger.error("scheduler_tick_error", error=str(e), exc_info=True)
                if self._running:
                    await asyncio.sleep(self._settings.scheduler.interval)
        finally:
            self._running = False
            logger.info("scheduler_stopped")

    async def stop(self) -> None:
        """Signal the loop to exit after the current tick."""
        logger.info("scheduler_stopping")
        self._running = False

    async def run_tick(self) -> dict[str, TradeState | None]:
        """Evaluate all symbols once.

        Returns:
            Mapping of symbol to its new TradeState, or None when the symbol
            produced no state this tick.
        """
        self._tick_count += 1
        symbols = self._settings.scheduler.symbols

        try:
            account_info = await self._exchange.get_account_info()
        except UpstreamUnavailableError as e:
            logger.error("account_info_unavailable", tick=self._tick_count, error=str(e))
            return {symbol: None for symbol in symbols}

        results = await asyncio.gather(
            *(self._evaluate_symbol(symbol, account_info) for symbol in symbols),
            return_exceptions=True,
        )
        states: dict[str, TradeState | None] = {}
        for symbol, result in zip(symbols, results):
            if isinstance(result, BaseException):
                logger.error(
                    "symbol_evaluation_crashed",
                    symbol=symbol,
                    error=str(result),
                    exc_info=result,
                )
                states[symbol] = None
            else:
                states[symbol] = result

        logger.info(
            "scheduler_tick_completed",
            tick=self._tick_count,
            symbols=len(symbols),
            published=sum(1 for state in states.values() if state is not None),
        )
        return states

    async def _evaluate_symbol(self, symbol: str, account_info: AccountInfo) -> TradeState | None:
        lock = self._symbol_locks.setdefault(symbol, asyncio.Lock())
        if lock.locked():
            logger.warning("symbol_evaluation_in_progress", symbol=symbol)
            return None

        async with lock:
            with structlog.contextvars.bound_contextvars(symbol=symbol, tick=self._tick_count):
                try:
                    open_orders = await self._exchange.get_open_orders(symbol)
                    raw_state = TradeState(
                        symbol=symbol,
                        account_info=account_info,
                        open_orders=tuple(open_orders),
                    )
                    state = await self._pipeline.evaluate(
                        self._settings.symbol_configuration(symbol), raw_state
                    )
                except InsufficientDataError as e:
                    logger.info("no_signal_insufficient_data", reason=str(e))
                    return None
                except (MalformedCandleError, MalformedSymbolInfoError) as e:
                    logger.warning("skipping_symbol_malformed_data", error=str(e))
                    return None
                except UpstreamUnavailableError as e:
                    logger.error("upstream_unavailable", error=str(e))
                    return None
                except TrailTradeError as e:
                    logger.error("symbol_evaluation_failed", error=str(e))
                    return None

                await self._board.publish(state)
                return state
