"""Configuration system using pydantic-settings with environment variable loading.

Per-symbol trading configuration is read-only to the pipeline: every settings
group used inside a SymbolConfiguration is frozen.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

#: RSI period plus the three candles the pattern detector looks back over.
MIN_CANDLE_LIMIT = 17


class BinanceSettings(BaseSettings):
    """Binance spot exchange connection settings."""

    model_config = SettingsConfigDict(env_prefix="BINANCE_")

    api_key: SecretStr = SecretStr("")
    api_secret: SecretStr = SecretStr("")
    testnet: bool = False


class CandleSettings(BaseSettings):
    """Candle window retrieved on every tick."""

    model_config = SettingsConfigDict(env_prefix="CANDLES_", frozen=True)

    interval: str = "1h"
    limit: int = Field(default=100, ge=MIN_CANDLE_LIMIT)


class BuySettings(BaseSettings):
    """Buy-side trigger parameters. Percentages are multipliers (1.01 = +1%)."""

    model_config = SettingsConfigDict(env_prefix="BUY_", frozen=True)

    enabled: bool = True
    trigger_percentage: Decimal = Decimal("1.01")
    limit_percentage: Decimal = Decimal("1.021")
    rsi: Decimal = Decimal("30")  # previous-candle RSI must be below this


class SellSettings(BaseSettings):
    """Sell-side trigger parameters. Percentages are multipliers."""

    model_config = SettingsConfigDict(env_prefix="SELL_", frozen=True)

    trigger_percentage: Decimal = Decimal("1.06")
    limit_percentage: Decimal = Decimal("0.979")


class SymbolConfiguration(BaseModel):
    """Complete trading configuration for one symbol."""

    model_config = ConfigDict(frozen=True)

    candles: CandleSettings = CandleSettings()
    buy: BuySettings = BuySettings()
    sell: SellSettings = SellSettings()


class SchedulerSettings(BaseSettings):
    """Which symbols are evaluated and how often."""

    model_config = SettingsConfigDict(env_prefix="SCHEDULER_")

    symbols: list[str] = ["BTCUSDT", "ETHUSDT"]
    interval: float = 30.0  # seconds between ticks


class StoreSettings(BaseSettings):
    """Persistent store location."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    db_path: str = "data/trailtrade.db"


class DashboardSettings(BaseSettings):
    """Read-only JSON API server configuration."""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: str = "console"  # "json" or "console"
    exchange: BinanceSettings = BinanceSettings()
    symbol_defaults: SymbolConfiguration = SymbolConfiguration()
    symbol_overrides: dict[str, SymbolConfiguration] = {}
    scheduler: SchedulerSettings = SchedulerSettings()
    store: StoreSettings = StoreSettings()
    dashboard: DashboardSettings = DashboardSettings()

    def symbol_configuration(self, symbol: str) -> SymbolConfiguration:
        """Return the per-symbol override if one is configured, else the defaults."""
        return self.symbol_overrides.get(symbol, self.symbol_defaults)
