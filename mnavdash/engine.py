"""Orchestrator: concurrent market refreshes and snapshot import into a DashboardState."""

from __future__ import annotations

import asyncio
import logging

from .market.finnhub_client import (
    refresh_bitcoin_price,
    refresh_shares_outstanding,
    refresh_stock_prices,
)
from .models import CompanyWithCalculations
from .snapshot import ImportResult, get_new_tickers, parse_snapshot
from .state import DashboardState

logger = logging.getLogger(__name__)


def _fail_stuck_statuses(state: DashboardState) -> None:
    """Anything still loading after a timeout is reported as an error."""
    if state.btc_api_status == "loading":
        state.set_btc_api_status("error")
    if state.stock_api_status == "loading":
        state.set_stock_api_status("error")
    if state.shares_outstanding_api_status == "loading":
        state.set_shares_outstanding_api_status("error")


async def refresh_dashboard(
    state: DashboardState,
    timeout: float = 60.0,
    include_shares: bool = True,
) -> list[CompanyWithCalculations]:
    """Refresh BTC price, stock prices and (optionally) share counts, then recompute.

    Three concurrent streams write into ``state``. A failure or timeout in one
    stream leaves the others' results in place and shows up as an ``error``
    status rather than an exception.
    """
    streams = [refresh_bitcoin_price(state), refresh_stock_prices(state)]
    if include_shares:
        streams.append(refresh_shares_outstanding(state))

    try:
        results = await asyncio.wait_for(
            asyncio.gather(*streams, return_exceptions=True),
            timeout=timeout,
        )
    except TimeoutError:
        logger.warning("Market refresh timed out after %.1fs", timeout)
        results = []

    for result in results:
        if isinstance(result, Exception):
            logger.warning("Market refresh stream failed: %s", result)
    _fail_stuck_statuses(state)

    return state.sorted_companies()


async def import_snapshot(state: DashboardState, text: str | bytes) -> ImportResult | None:
    """Validate and apply a snapshot, then fetch share counts for tickers that need them.

    Returns None (state untouched) when the snapshot is invalid.
    """
    result = parse_snapshot(text)
    if result is None:
        logger.warning("Snapshot import rejected")
        return None

    needs_fetch = get_new_tickers(result.companies, state.companies, state.api_shares_outstanding)
    state.import_data(result)

    if needs_fetch:
        logger.info("Fetching shares outstanding for %d imported tickers", len(needs_fetch))
        await refresh_shares_outstanding(state, needs_fetch)
    return result
