"""Abstract exchange client interface.

Defines the contract the pipeline and scheduler depend on, keeping
Binance-specific details isolated in the concrete implementation.
Implementations raise UpstreamUnavailableError on network or exchange
failures and never retry internally.
"""

from abc import ABC, abstractmethod

from trailtrade.models import AccountInfo, Balance, OpenOrder


class ExchangeClient(ABC):
    """Abstract base class for exchange API clients."""

    @abstractmethod
    async def connect(self) -> None:
        """Initialize connection and load markets."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources (CRITICAL for ccxt async)."""
        ...

    @abstractmethod
    async def get_candles(self, symbol: str, interval: str, limit: int) -> list[dict]:
        """Fetch the most recent ``limit`` candles, oldest first.

        Returns raw records with keys openTime, open, high, low, close, volume.
        Values keep the exchange's string form; parsing is the normalizer's job.
        """
        ...

    @abstractmethod
    async def get_symbol_filters(self, symbol: str) -> dict:
        """Fetch the raw exchange symbol record, including its ``filters`` list."""
        ...

    @abstractmethod
    async def get_open_orders(self, symbol: str) -> list[OpenOrder]:
        """Fetch open orders for one symbol."""
        ...

    @abstractmethod
    async def get_account_info(self) -> AccountInfo:
        """Fetch all account balances with the exchange's update time."""
        ...

    async def get_balances(self) -> list[Balance]:
        """Fetch all account balances."""
        account_info = await self.get_account_info()
        return list(account_info.balances)
