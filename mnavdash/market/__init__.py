"""Market data layer (Finnhub)."""

from .finnhub_client import (
    fetch_bitcoin_price,
    fetch_shares_outstanding,
    fetch_stock_price,
    refresh_bitcoin_price,
    refresh_shares_outstanding,
    refresh_stock_prices,
    retry_shares,
)

__all__ = [
    "fetch_bitcoin_price",
    "fetch_shares_outstanding",
    "fetch_stock_price",
    "refresh_bitcoin_price",
    "refresh_shares_outstanding",
    "refresh_stock_prices",
    "retry_shares",
]
