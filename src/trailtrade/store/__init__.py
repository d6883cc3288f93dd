"""Cache and persistence layer.

Provides the symbol-info cache, the SQLite document store, and the
repositories the pipeline reads symbol metadata and last buy prices from.
"""

from trailtrade.store.cache import CacheStore, InMemoryCacheStore
from trailtrade.store.database import TradeStateDatabase
from trailtrade.store.documents import PersistentStore, SqliteDocumentStore
from trailtrade.store.last_buy_price import LastBuyPriceRepository
from trailtrade.store.symbol_info import SymbolInfoProvider, parse_symbol_info

__all__ = [
    "CacheStore",
    "InMemoryCacheStore",
    "LastBuyPriceRepository",
    "PersistentStore",
    "SqliteDocumentStore",
    "SymbolInfoProvider",
    "TradeStateDatabase",
    "parse_symbol_info",
]
