"""Entry point for the trailing trade indicator service.

Wires all components together, optionally embeds the read-only JSON API,
and starts the scheduler. When the API is enabled (default), the scheduler
and the API share a single asyncio event loop via uvicorn's programmatic
API and FastAPI's lifespan context manager.

Handles SIGINT/SIGTERM for graceful shutdown.

Component wiring order (in _build_components):
1. AppSettings (configuration)
2. Logging setup
3. ExchangeClient (BinanceClient)
4. Cache and persistent stores
5. SymbolInfoProvider and LastBuyPriceRepository
6. IndicatorPipeline
7. TradeStateBoard
8. TradeScheduler
"""

import asyncio
import signal
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from trailtrade.config import AppSettings
from trailtrade.exchange.binance_client import BinanceClient
from trailtrade.indicators.pipeline import IndicatorPipeline
from trailtrade.logging import get_logger, setup_logging
from trailtrade.scheduler import TradeScheduler
from trailtrade.state_board import TradeStateBoard
from trailtrade.store.cache import InMemoryCacheStore
from trailtrade.store.database import TradeStateDatabase
from trailtrade.store.documents import SqliteDocumentStore
from trailtrade.store.last_buy_price import LastBuyPriceRepository
from trailtrade.store.symbol_info import SymbolInfoProvider


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all components from settings.

    Note: Does NOT connect the exchange client or the database -- that
    happens in the lifespan (API mode) or run() (headless mode).

    Args:
        settings: Application-wide settings.

    Returns:
        Dict mapping component names to instances.
    """
    logger = get_logger("trailtrade.main")

    exchange_client = BinanceClient(settings.exchange)
    if not settings.exchange.api_key.get_secret_value():
        logger.warning(
            "no_api_keys_configured",
            note="Candles and symbol info will work. Balances and open orders will fail.",
        )

    cache = InMemoryCacheStore()
    database = TradeStateDatabase(settings.store.db_path)
    document_store = SqliteDocumentStore(database)

    pipeline = IndicatorPipeline(
        exchange=exchange_client,
        symbol_info_provider=SymbolInfoProvider(exchange_client, cache),
        last_buy_prices=LastBuyPriceRepository(document_store),
    )

    board = TradeStateBoard()
    scheduler = TradeScheduler(
        settings=settings,
        exchange=exchange_client,
        pipeline=pipeline,
        board=board,
    )

    return {
        "exchange_client": exchange_client,
        "cache": cache,
        "database": database,
        "pipeline": pipeline,
        "board": board,
        "scheduler": scheduler,
    }


def _setup_signal_handlers(scheduler: TradeScheduler) -> None:
    """Register SIGINT/SIGTERM to stop the scheduler gracefully.

    Must be called after the asyncio event loop is running.
    """
    logger = get_logger("trailtrade.main")
    loop = asyncio.get_running_loop()

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        asyncio.create_task(scheduler.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage component lifecycle within the FastAPI application.

    On startup: connects exchange and database, starts the scheduler as a
    background task. On shutdown: stops the scheduler and releases both.
    """
    logger = get_logger("trailtrade.main")
    components = app.state.components

    app.state.board = components["board"]

    await components["exchange_client"].connect()
    await components["database"].connect()

    scheduler_task = asyncio.create_task(components["scheduler"].start())
    logger.info("lifespan_started", symbols=app.state.settings.scheduler.symbols)

    yield

    await components["scheduler"].stop()
    scheduler_task.cancel()
    try:
        await scheduler_task
    except asyncio.CancelledError:
        pass

    await components["database"].close()
    await components["exchange_client"].close()
    logger.info("trailtrade_stopped")


async def run() -> None:
    """Run the trailing trade indicator service.

    With the API enabled (DASHBOARD_ENABLED=true, the default) the
    scheduler runs inside uvicorn's event loop, managed by the lifespan.
    Otherwise the scheduler runs directly until SIGINT/SIGTERM.
    """
    settings = AppSettings()

    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("trailtrade.main")

    components = _build_components(settings)

    if settings.dashboard.enabled:
        from trailtrade.dashboard.app import create_dashboard_app

        app = create_dashboard_app(lifespan=lifespan)
        app.state.settings = settings
        app.state.components = components

        logger.info(
            "starting_with_api",
            host=settings.dashboard.host,
            port=settings.dashboard.port,
        )

        config = uvicorn.Config(
            app,
            host=settings.dashboard.host,
            port=settings.dashboard.port,
            log_level="warning",  # Suppress uvicorn access logs
        )
        server = uvicorn.Server(config)
        await server.serve()
    else:
        _setup_signal_handlers(components["scheduler"])
        logger.info("starting_without_api", symbols=settings.scheduler.symbols)

        try:
            await components["exchange_client"].connect()
            await components["database"].connect()
            await components["scheduler"].start()
        finally:
            await components["database"].close()
            await components["exchange_client"].close()
            logger.info("trailtrade_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
