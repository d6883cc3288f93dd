"""Binance spot client implementation via ccxt async.

Uses ccxt's raw Binance endpoints instead of the unified API so that
prices and quantities arrive as strings and keep full precision.
"""

import ccxt
import ccxt.async_support as ccxt_async

from trailtrade.config import BinanceSettings
from trailtrade.exceptions import UpstreamUnavailableError
from trailtrade.exchange.client import ExchangeClient
from trailtrade.logging import get_logger
from trailtrade.models import AccountInfo, Balance, OpenOrder

logger = get_logger(__name__)


def _kline_to_candle(kline: list) -> dict:
    """Map a raw Binance kline array to a named candle record."""
    return {
        "openTime": kline[0],
        "open": kline[1],
        "high": kline[2],
        "low": kline[3],
        "close": kline[4],
        "volume": kline[5],
    }


class BinanceClient(ExchangeClient):
    """Concrete Binance spot client using ccxt async."""

    def __init__(self, settings: BinanceSettings) -> None:
        self._settings = settings

        config: dict = {
            "apiKey": settings.api_key.get_secret_value(),
            "secret": settings.api_secret.get_secret_value(),
            "enableRateLimit": True,
            "options": {
                "defaultType": "spot",
            },
        }

        self._exchange = ccxt_async.binance(config)
        if settings.testnet:
            self._exchange.set_sandbox_mode(True)

    @property
    def exchange(self) -> ccxt_async.binance:
        """Access the underlying ccxt exchange instance."""
        return self._exchange

    async def connect(self) -> None:
        """Initialize connection by loading markets."""
        logger.info("connecting_to_binance", testnet=self._settings.testnet)
        try:
            markets = await self._exchange.load_markets()
        except ccxt.BaseError as e:
            raise UpstreamUnavailableError(f"Failed to load Binance markets: {e}") from e
        logger.info("binance_connected", market_count=len(markets))

    async def close(self) -> None:
        """Clean up ccxt async resources. CRITICAL: must be called to avoid resource leaks."""
        logger.info("closing_binance_connection")
        await self._exchange.close()
        logger.info("binance_connection_closed")

    async def get_candles(self, symbol: str, interval: str, limit: int) -> list[dict]:
        """Fetch raw klines and name their fields."""
        try:
            klines = await self._exchange.publicGetKlines(
                {"symbol": symbol, "interval": interval, "limit": limit}
            )
        except ccxt.BaseError as e:
            raise UpstreamUnavailableError(f"Failed to fetch candles for {symbol}: {e}") from e
        logger.debug("fetched_candles", symbol=symbol, interval=interval, count=len(klines))
        return [_kline_to_candle(k) for k in klines]

    async def get_symbol_filters(self, symbol: str) -> dict:
        """Fetch the exchange info entry for one symbol."""
        try:
            exchange_info = await self._exchange.publicGetExchangeInfo({"symbol": symbol})
        except ccxt.BaseError as e:
            raise UpstreamUnavailableError(f"Failed to fetch exchange info for {symbol}: {e}") from e

        for entry in exchange_info.get("symbols", []):
            if entry.get("symbol") == symbol:
                return entry
        raise UpstreamUnavailableError(f"Symbol {symbol} not found in Binance exchange info")

    async def get_open_orders(self, symbol: str) -> list[OpenOrder]:
        """Fetch open orders for one symbol."""
        try:
            raw_orders = await self._exchange.privateGetOpenOrders({"symbol": symbol})
        except ccxt.BaseError as e:
            raise UpstreamUnavailableError(f"Failed to fetch open orders for {symbol}: {e}") from e
        return [OpenOrder.from_exchange(raw) for raw in raw_orders]

    async def get_account_info(self) -> AccountInfo:
        """Fetch account balances, dropping assets with nothing free or locked."""
        try:
            account = await self._exchange.privateGetAccount()
        except ccxt.BaseError as e:
            raise UpstreamUnavailableError(f"Failed to fetch account info: {e}") from e

        balances = [Balance.from_exchange(raw) for raw in account.get("balances", [])]
        return AccountInfo(
            balances=tuple(b for b in balances if b.free or b.locked),
            update_time=int(account.get("updateTime", 0)),
        )
