"""Async Finnhub feed for BTC price, stock prices and shares outstanding.

Writes results into a DashboardState. Malformed or missing vendor fields count
as a failed fetch: the cached value is left alone and the failure shows up as
an ``error`` status (and, for shares, a per-ticker error flag).
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

import finnhub

from ..config import get_settings
from ..state import DashboardState

logger = logging.getLogger(__name__)

# Module-level cache: (endpoint, symbol) -> (fetched_epoch, payload)
_cache: dict[tuple[str, str], tuple[float, dict]] = {}
_semaphore: asyncio.Semaphore | None = None
_client: finnhub.Client | None = None
# Index into SHARES_ENDPOINTS of the last endpoint that returned a share count
_shares_endpoint_index = 0


def _get_semaphore() -> asyncio.Semaphore:
    global _semaphore
    if _semaphore is None:
        _semaphore = asyncio.Semaphore(get_settings().market_concurrency)
    return _semaphore


def _get_client() -> finnhub.Client:
    global _client
    if _client is None:
        _client = finnhub.Client(api_key=get_settings().finnhub_api_key)
    return _client


async def _call_in_thread(fn, *args, **kwargs):
    """Run a sync Finnhub call in a thread, respecting the concurrency semaphore."""
    async with _get_semaphore():
        return await asyncio.to_thread(fn, *args, **kwargs)


def _cache_get(endpoint: str, symbol: str) -> dict | None:
    """Return cached payload if within TTL, else None."""
    key = (endpoint, symbol)
    if key in _cache:
        fetched_epoch, payload = _cache[key]
        if time.time() - fetched_epoch < get_settings().market_ttl_seconds:
            return payload
        del _cache[key]
    return None


def _cache_set(endpoint: str, symbol: str, payload: dict) -> None:
    _cache[(endpoint, symbol)] = (time.time(), payload)


async def _cached_call(
    endpoint: str,
    ticker: str,
    fn: Callable[..., dict[str, Any]],
    *args: Any,
    **kwargs: Any,
) -> dict:
    cached = _cache_get(endpoint, ticker)
    if cached is not None:
        return cached
    data = await _call_in_thread(fn, *args, **kwargs)
    if not isinstance(data, dict):
        raise TypeError(f"{endpoint} returned {type(data).__name__}, expected object")
    _cache_set(endpoint, ticker, data)
    return data


def _parse_positive(raw: Any, label: str) -> float | None:
    """Strictly positive number or None. Strings and bools are rejected."""
    if raw is None or isinstance(raw, bool) or not isinstance(raw, (int, float)):
        if raw is not None:
            logger.debug("Non-numeric %s from Finnhub (%r); treated as missing", label, raw)
        return None
    if raw <= 0:
        logger.debug("Negative or zero %s from Finnhub (%r); treated as missing", label, raw)
        return None
    return float(raw)


async def fetch_stock_price(symbol: str) -> float | None:
    """Current price from the quote endpoint."""
    client = _get_client()
    quote = await _cached_call("quote", symbol, client.quote, symbol)
    return _parse_positive(quote.get("c"), "price")


async def fetch_bitcoin_price() -> float | None:
    """BTC/USD from the quote endpoint on the configured crypto symbol."""
    symbol = get_settings().bitcoin_symbol
    client = _get_client()
    quote = await _cached_call("quote", symbol, client.quote, symbol)
    return _parse_positive(quote.get("c"), "bitcoin price")


async def _shares_from_profile(client: finnhub.Client, symbol: str) -> float | None:
    profile = await _cached_call("profile", symbol, client.company_profile2, symbol=symbol)
    millions = _parse_positive(profile.get("shareOutstanding"), "profile shares")
    # Finnhub profile returns shares in millions
    return millions * 1_000_000 if millions is not None else None


async def _shares_from_metric(client: finnhub.Client, symbol: str) -> float | None:
    data = await _cached_call("metric", symbol, client.company_basic_financials, symbol, "all")
    metric = data.get("metric") or {}
    raw = metric.get("shareOutstanding")
    if raw is None:
        raw = metric.get("sharesOutstanding")
    value = _parse_positive(raw, "metric shares")
    if value is None:
        return None
    # Metric endpoint unit varies: above 1,000,000 looks like an absolute count,
    # anything smaller is taken as millions.
    if value > 1_000_000:
        return value
    return value * 1_000_000


SHARES_ENDPOINTS: list[
    tuple[str, Callable[[finnhub.Client, str], Awaitable[float | None]]]
] = [
    ("profile", _shares_from_profile),
    ("metric", _shares_from_metric),
]


async def fetch_shares_outstanding(symbol: str) -> float | None:
    """Try each shares endpoint in turn, starting from the last one that worked."""
    global _shares_endpoint_index
    client = _get_client()
    start = _shares_endpoint_index

    for offset in range(len(SHARES_ENDPOINTS)):
        index = (start + offset) % len(SHARES_ENDPOINTS)
        name, fetch = SHARES_ENDPOINTS[index]
        try:
            shares = await fetch(client, symbol)
        except Exception as e:
            logger.debug("Shares endpoint %s failed for %s: %s", name, symbol, e)
            continue
        if shares is not None:
            _shares_endpoint_index = index
            return shares

    return None


async def _fetch_or_none(fetch: Callable[[str], Awaitable[float | None]], symbol: str):
    try:
        return await fetch(symbol)
    except Exception as e:
        logger.warning("Finnhub fetch failed for %s: %s", symbol, e)
        return None


async def refresh_bitcoin_price(state: DashboardState) -> bool:
    """Fetch BTC/USD into the state. Returns True on success."""
    state.set_btc_api_status("loading")
    try:
        price = await fetch_bitcoin_price()
    except Exception as e:
        logger.warning("Bitcoin price fetch failed: %s", e)
        price = None

    if price is None:
        state.set_btc_api_status("error")
        return False
    state.set_bitcoin_price(price)
    return True


async def refresh_stock_prices(
    state: DashboardState,
    tickers: Iterable[str] | None = None,
) -> int:
    """Fetch prices ticker by ticker. Returns the number of successes.

    Status ends as ``success`` if any ticker succeeded (or there were none),
    else ``error``.
    """
    symbols = list(tickers) if tickers is not None else state.tickers()
    delay = get_settings().request_delay_seconds
    state.set_stock_api_status("loading")

    successes = 0
    for i, symbol in enumerate(symbols):
        if i and delay:
            await asyncio.sleep(delay)
        price = await _fetch_or_none(fetch_stock_price, symbol)
        if price is not None:
            state.set_stock_price(symbol, price)
            successes += 1

    state.set_stock_api_status("success" if successes or not symbols else "error")
    logger.info("Stock prices refreshed: %d/%d tickers", successes, len(symbols))
    return successes


async def _fetch_shares_into(state: DashboardState, symbol: str) -> bool:
    if state.manual_shares_outstanding.get(symbol) is not None:
        # Manual override in force, nothing to fetch
        return True
    shares = await _fetch_or_none(fetch_shares_outstanding, symbol)
    if shares is None:
        state.set_shares_outstanding_error(symbol)
        return False
    state.set_api_shares_outstanding(symbol, shares)
    return True


async def refresh_shares_outstanding(
    state: DashboardState,
    tickers: Iterable[str] | None = None,
) -> int:
    """Fetch share counts ticker by ticker. Returns the number of successes."""
    symbols = list(tickers) if tickers is not None else state.tickers()
    delay = get_settings().request_delay_seconds
    state.set_shares_outstanding_api_status("loading")

    successes = 0
    for i, symbol in enumerate(symbols):
        if i and delay:
            await asyncio.sleep(delay)
        if await _fetch_shares_into(state, symbol):
            successes += 1

    state.set_shares_outstanding_api_status("success" if successes or not symbols else "error")
    logger.info("Shares outstanding refreshed: %d/%d tickers", successes, len(symbols))
    return successes


async def retry_shares(state: DashboardState, ticker: str) -> bool:
    """Clear a ticker's error flag and fetch its share count again."""
    state.clear_shares_outstanding_error(ticker)
    return await refresh_shares_outstanding(state, [ticker]) > 0


def clear_cache() -> None:
    """Clear the in-memory TTL cache, client and endpoint memory. Useful for testing."""
    global _client, _semaphore, _shares_endpoint_index
    _cache.clear()
    _client = None
    _semaphore = None
    _shares_endpoint_index = 0
