"""Example: refresh the seed companies and print the mNAV table."""

import asyncio

from mnavdash import DashboardState, explain_all, refresh_dashboard
from mnavdash.config import configure_logging
from mnavdash.formatting import format_ratio, format_usd, format_usd_price, source_label
from mnavdash.models import CalculationInputs


async def main():
    configure_logging()
    state = DashboardState.initial()
    state.set_sort_config("mNAV", "asc")

    rows = await refresh_dashboard(state)

    print(f"BTC: {format_usd_price(state.bitcoin_price)} ({state.btc_api_status})")
    print(f"{'Ticker':<8}{'mNAV':>8}{'Price':>12}{'Mkt Cap':>12}{'EV':>12}{'Eq. BTC':>14}  Shares")
    for r in rows:
        print(
            f"{r.ticker:<8}"
            f"{format_ratio(r.mnav):>8}"
            f"{format_usd_price(r.stock_price):>12}"
            f"{format_usd(r.market_cap, compact=True):>12}"
            f"{format_usd(r.enterprise_value, compact=True):>12}"
            f"{format_usd(r.equilibrium_btc_price):>14}"
            f"  {source_label(state.shares_source(r.ticker))}"
        )

    # Formula trail for the first row
    if rows:
        first = state.companies[0]
        inputs = CalculationInputs.for_company(
            first,
            state.effective_stock_price(first.ticker),
            state.bitcoin_price,
            shares=state.effective_shares_outstanding(first.ticker),
        )
        print(f"\nFormula trail for {first.ticker}:")
        for name, cv in explain_all(inputs).items():
            detail = cv.value if cv.value is not None else "; ".join(cv.warnings)
            print(f"  {name} = {cv.formula} -> {detail}")


if __name__ == "__main__":
    asyncio.run(main())
