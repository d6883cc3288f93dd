"""Exchange client layer -- Binance spot API integration via ccxt."""

from trailtrade.exchange.binance_client import BinanceClient
from trailtrade.exchange.client import ExchangeClient

__all__ = ["BinanceClient", "ExchangeClient"]
