"""Valuation formulas: market cap, EV bridge, mNAV and fair-value prices.

Every function returns None when inputs are insufficient and never returns
NaN or infinity; a result too large for a float is also None. Secondary
operands (cash, other assets, debt, preferred stock) count as 0 when missing;
required operands propagate None.
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any

from ..models import CalculationInputs, CalculationOutputs, ComputedValue
from ._utils import (
    Number,
    check_number,
    divide_warning,
    finite_or_none,
    or_zero,
    safe_divide,
)


def _finite_result(fn: Callable[..., Number | None]) -> Callable[..., Number | None]:
    """Turn an overflowing or non-finite result into None."""

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Number | None:
        try:
            return finite_or_none(fn(*args, **kwargs))
        except OverflowError:
            return None

    return wrapper


@_finite_result
def calc_market_cap(shares: Number | None, price: Number | None) -> Number | None:
    """Market cap = shares outstanding * stock price."""
    shares = check_number("shares", shares)
    price = check_number("price", price)
    if shares is None or price is None:
        return None
    return shares * price


@_finite_result
def calc_bitcoin_assets(btc: Number | None, btc_price: Number | None) -> Number | None:
    """Bitcoin assets = BTC holdings * BTC price."""
    btc = check_number("btc", btc)
    btc_price = check_number("btc_price", btc_price)
    if btc is None or btc_price is None:
        return None
    return btc * btc_price


@_finite_result
def calc_assets(
    bitcoin_assets: Number | None,
    cash: Number | None,
    other_assets: Number | None,
) -> Number | None:
    """Assets = bitcoin assets + cash + other assets."""
    bitcoin_assets = check_number("bitcoin_assets", bitcoin_assets)
    cash = check_number("cash", cash)
    other_assets = check_number("other_assets", other_assets)
    if bitcoin_assets is None:
        return None
    return bitcoin_assets + or_zero(cash) + or_zero(other_assets)


@_finite_result
def calc_debt(long_term_debt: Number | None, other_debt: Number | None) -> Number:
    """Debt = long-term debt + other debt. None only if the sum overflows."""
    long_term_debt = check_number("long_term_debt", long_term_debt)
    other_debt = check_number("other_debt", other_debt)
    return or_zero(long_term_debt) + or_zero(other_debt)


@_finite_result
def calc_enterprise_value(
    market_cap: Number | None,
    debt: Number | None,
    preferred_stock: Number | None,
    cash: Number | None,
) -> Number | None:
    """EV = market cap + debt + preferred stock - cash."""
    market_cap = check_number("market_cap", market_cap)
    debt = check_number("debt", debt)
    preferred_stock = check_number("preferred_stock", preferred_stock)
    cash = check_number("cash", cash)
    if market_cap is None:
        return None
    return market_cap + or_zero(debt) + or_zero(preferred_stock) - or_zero(cash)


@_finite_result
def calc_mnav(enterprise_value: Number | None, bitcoin_assets: Number | None) -> float | None:
    """mNAV = enterprise value / bitcoin assets."""
    enterprise_value = check_number("enterprise_value", enterprise_value)
    bitcoin_assets = check_number("bitcoin_assets", bitcoin_assets)
    return safe_divide(enterprise_value, bitcoin_assets)


@_finite_result
def calc_market_cap_to_assets(market_cap: Number | None, assets: Number | None) -> float | None:
    """Market cap / assets."""
    market_cap = check_number("market_cap", market_cap)
    assets = check_number("assets", assets)
    return safe_divide(market_cap, assets)


@_finite_result
def calc_fair_stock_price(
    assets: Number | None,
    debt: Number | None,
    preferred_stock: Number | None,
    market_cap: Number | None,
    stock_price: Number | None,
) -> float | None:
    """Fair stock price = ((assets - debt - preferred stock) / market cap) * stock price."""
    assets = check_number("assets", assets)
    debt = check_number("debt", debt)
    preferred_stock = check_number("preferred_stock", preferred_stock)
    market_cap = check_number("market_cap", market_cap)
    stock_price = check_number("stock_price", stock_price)
    if assets is None or stock_price is None:
        return None
    ratio = safe_divide(assets - or_zero(debt) - or_zero(preferred_stock), market_cap)
    if ratio is None:
        return None
    return ratio * stock_price


@_finite_result
def calc_fair_btc_stock_price(
    bitcoin_assets: Number | None,
    long_term_debt: Number | None,
    preferred_stock: Number | None,
    market_cap: Number | None,
) -> float | None:
    """Fair BTC stock price = (bitcoin assets - long-term debt - preferred stock) / market cap."""
    bitcoin_assets = check_number("bitcoin_assets", bitcoin_assets)
    long_term_debt = check_number("long_term_debt", long_term_debt)
    preferred_stock = check_number("preferred_stock", preferred_stock)
    market_cap = check_number("market_cap", market_cap)
    if bitcoin_assets is None:
        return None
    return safe_divide(
        bitcoin_assets - or_zero(long_term_debt) - or_zero(preferred_stock), market_cap
    )


@_finite_result
def calc_equilibrium_btc_price(
    btc_price: Number | None,
    bitcoin_assets: Number | None,
    enterprise_value: Number | None,
) -> float | None:
    """BTC price at which mNAV would be 1: btc price * (bitcoin assets / EV)."""
    btc_price = check_number("btc_price", btc_price)
    bitcoin_assets = check_number("bitcoin_assets", bitcoin_assets)
    enterprise_value = check_number("enterprise_value", enterprise_value)
    if btc_price is None:
        return None
    ratio = safe_divide(bitcoin_assets, enterprise_value)
    if ratio is None:
        return None
    return btc_price * ratio


def calculate_all(inputs: CalculationInputs) -> CalculationOutputs:
    """Compute every metric in dependency order. Missing data propagates as None."""
    market_cap = calc_market_cap(inputs.common_shares_outstanding, inputs.stock_price)
    bitcoin_assets = calc_bitcoin_assets(inputs.bitcoin, inputs.bitcoin_price)
    assets = calc_assets(bitcoin_assets, inputs.cash, inputs.other_assets)
    debt = calc_debt(inputs.long_term_debt, inputs.other_debt)
    enterprise_value = calc_enterprise_value(market_cap, debt, inputs.preferred_stock, inputs.cash)

    return CalculationOutputs(
        market_cap=market_cap,
        bitcoin_assets=bitcoin_assets,
        assets=assets,
        debt=debt,
        enterprise_value=enterprise_value,
        mnav=calc_mnav(enterprise_value, bitcoin_assets),
        market_cap_to_assets=calc_market_cap_to_assets(market_cap, assets),
        fair_stock_price=calc_fair_stock_price(
            assets, debt, inputs.preferred_stock, market_cap, inputs.stock_price
        ),
        fair_btc_stock_price=calc_fair_btc_stock_price(
            bitcoin_assets, inputs.long_term_debt, inputs.preferred_stock, market_cap
        ),
        equilibrium_btc_price=calc_equilibrium_btc_price(
            inputs.bitcoin_price, bitcoin_assets, enterprise_value
        ),
    )


def _computed(
    metric: str,
    value: Number | None,
    unit: str,
    formula: str,
    components: dict[str, Any],
    warning: str | None = None,
) -> ComputedValue:
    return ComputedValue(
        metric=metric,
        value=value,
        unit=unit,
        formula=formula,
        components=components,
        warnings=[warning or "result out of range"] if value is None else [],
    )


def _first_missing(operands: dict[str, Any]) -> str | None:
    for label, value in operands.items():
        if value is None:
            return f"{label} unavailable"
    return None


def explain_all(inputs: CalculationInputs) -> dict[str, ComputedValue]:
    """Same numbers as calculate_all, each with its formula and inputs.

    Warnings say which operand made a metric unavailable.
    """
    out = calculate_all(inputs)
    result: dict[str, ComputedValue] = {}

    shares = inputs.common_shares_outstanding
    missing_mcap = _first_missing(
        {"shares outstanding": shares, "stock price": inputs.stock_price}
    )
    result["market_cap"] = _computed(
        "market_cap",
        out.market_cap,
        "USD",
        "shares_outstanding * stock_price",
        {"shares_outstanding": shares, "stock_price": inputs.stock_price},
        missing_mcap,
    )

    missing_btc = _first_missing(
        {"bitcoin holdings": inputs.bitcoin, "bitcoin price": inputs.bitcoin_price}
    )
    result["bitcoin_assets"] = _computed(
        "bitcoin_assets",
        out.bitcoin_assets,
        "USD",
        "bitcoin * bitcoin_price",
        {"bitcoin": inputs.bitcoin, "bitcoin_price": inputs.bitcoin_price},
        missing_btc,
    )
    result["assets"] = _computed(
        "assets",
        out.assets,
        "USD",
        "bitcoin_assets + cash + other_assets",
        {
            "bitcoin_assets": out.bitcoin_assets,
            "cash": inputs.cash,
            "other_assets": inputs.other_assets,
        },
        _first_missing({"bitcoin_assets": out.bitcoin_assets}),
    )
    result["debt"] = _computed(
        "debt",
        out.debt,
        "USD",
        "long_term_debt + other_debt",
        {"long_term_debt": inputs.long_term_debt, "other_debt": inputs.other_debt},
    )
    result["enterprise_value"] = _computed(
        "enterprise_value",
        out.enterprise_value,
        "USD",
        "market_cap + debt + preferred_stock - cash",
        {
            "market_cap": out.market_cap,
            "debt": out.debt,
            "preferred_stock": inputs.preferred_stock,
            "cash": inputs.cash,
        },
        _first_missing({"market_cap": out.market_cap}),
    )
    result["mnav"] = _computed(
        "mnav",
        out.mnav,
        "x",
        "enterprise_value / bitcoin_assets",
        {"enterprise_value": out.enterprise_value, "bitcoin_assets": out.bitcoin_assets},
        divide_warning(
            out.enterprise_value, out.bitcoin_assets, "enterprise_value", "bitcoin_assets"
        ),
    )
    result["market_cap_to_assets"] = _computed(
        "market_cap_to_assets",
        out.market_cap_to_assets,
        "x",
        "market_cap / assets",
        {"market_cap": out.market_cap, "assets": out.assets},
        divide_warning(out.market_cap, out.assets, "market_cap", "assets"),
    )

    if out.assets is None:
        fair_warning = "assets unavailable"
    elif inputs.stock_price is None:
        fair_warning = "stock_price unavailable"
    else:
        fair_warning = divide_warning(out.assets, out.market_cap, "assets", "market_cap")
    result["fair_stock_price"] = _computed(
        "fair_stock_price",
        out.fair_stock_price,
        "USD/shares",
        "((assets - debt - preferred_stock) / market_cap) * stock_price",
        {
            "assets": out.assets,
            "debt": out.debt,
            "preferred_stock": inputs.preferred_stock,
            "market_cap": out.market_cap,
            "stock_price": inputs.stock_price,
        },
        fair_warning,
    )
    result["fair_btc_stock_price"] = _computed(
        "fair_btc_stock_price",
        out.fair_btc_stock_price,
        "x",
        "(bitcoin_assets - long_term_debt - preferred_stock) / market_cap",
        {
            "bitcoin_assets": out.bitcoin_assets,
            "long_term_debt": inputs.long_term_debt,
            "preferred_stock": inputs.preferred_stock,
            "market_cap": out.market_cap,
        },
        divide_warning(out.bitcoin_assets, out.market_cap, "bitcoin_assets", "market_cap"),
    )

    eq_warning = (
        "bitcoin_price unavailable"
        if inputs.bitcoin_price is None
        else divide_warning(
            out.bitcoin_assets, out.enterprise_value, "bitcoin_assets", "enterprise_value"
        )
    )
    result["equilibrium_btc_price"] = _computed(
        "equilibrium_btc_price",
        out.equilibrium_btc_price,
        "USD",
        "bitcoin_price * (bitcoin_assets / enterprise_value)",
        {
            "bitcoin_price": inputs.bitcoin_price,
            "bitcoin_assets": out.bitcoin_assets,
            "enterprise_value": out.enterprise_value,
        },
        eq_warning,
    )

    return result
