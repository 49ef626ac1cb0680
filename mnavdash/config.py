"""Configuration from environment variables."""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    finnhub_api_key: str = Field(
        default="", validation_alias=AliasChoices("MNAV_FINNHUB_API_KEY", "FINNHUB_API_KEY")
    )
    bitcoin_symbol: str = "BINANCE:BTCUSDT"
    market_ttl_seconds: int = Field(default=60, ge=0)
    market_concurrency: int = Field(default=4, ge=1)
    request_delay_seconds: float = Field(default=0.1, ge=0)
    btc_refresh_seconds: int = Field(default=60, ge=1)
    stock_refresh_seconds: int = Field(default=60, ge=1)
    shares_refresh_seconds: int = Field(default=86_400, ge=1)
    log_level: str = "INFO"

    model_config = {
        "env_prefix": "MNAV_",
        "case_sensitive": False,
        "env_file": ".env",
        "extra": "ignore",
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings for the current process."""
    return Settings()


def configure_logging(level: str | None = None) -> None:
    """Apply the configured log level to the root logger."""
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
