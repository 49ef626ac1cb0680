"""Snapshot import/export: legacy bare-list and version 2 envelope formats.

Legacy:   [ {company}, ... ]
Envelope: {"version": 2, "exportedAt": ISO-8601, "companies": [...],
           "manualSharesOutstanding": {ticker: n|null}?,
           "manualStockPrices": {ticker: n|null}?}

The shape is classified once here; everything downstream sees ImportResult.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Iterable, Mapping
from datetime import UTC, date, datetime
from typing import Any, Literal

from pydantic import BaseModel

from .models import BALANCE_SHEET_FIELDS, COMPANY_FIELDS, Company

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 2
STRING_FIELDS = ("id", "name", "ticker")

OverrideMap = dict[str, float | int | None]


class ImportResult(BaseModel):
    """Normalized import. Override maps are None when the payload omitted them."""

    format: Literal["legacy", "envelope"]
    version: int | None = None
    companies: list[Company]
    manual_shares_outstanding: OverrideMap | None = None
    manual_stock_prices: OverrideMap | None = None


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (isinstance(value, float) and not math.isfinite(value))


def _valid_company(item: Any) -> bool:
    if not isinstance(item, dict):
        return False
    if any(field not in item for field in COMPANY_FIELDS):
        return False
    if any(not isinstance(item[field], str) for field in STRING_FIELDS):
        return False
    return all(item[field] is None or _is_number(item[field]) for field in BALANCE_SHEET_FIELDS)


def _validate_companies(items: list[Any]) -> list[Company] | None:
    """All-or-nothing: one bad element rejects the whole batch."""
    for index, item in enumerate(items):
        if not _valid_company(item):
            logger.debug("Rejecting import: company at index %d is malformed", index)
            return None
    return [Company.model_validate(item) for item in items]


def _validate_override_map(raw: Any, name: str) -> tuple[bool, OverrideMap | None]:
    """Return (ok, map). A missing or null map is ok and stays None."""
    if raw is None:
        return True, None
    if not isinstance(raw, dict):
        logger.debug("Rejecting import: %s is not an object", name)
        return False, None
    for key, value in raw.items():
        if not isinstance(key, str) or not (value is None or _is_number(value)):
            logger.debug("Rejecting import: %s has invalid entry %r", name, key)
            return False, None
    return True, dict(raw)


def validate_import(data: Any) -> ImportResult | None:
    """Classify and validate parsed JSON. Returns None for anything invalid."""
    if isinstance(data, list):
        companies = _validate_companies(data)
        if companies is None:
            return None
        return ImportResult(format="legacy", companies=companies)

    if not isinstance(data, dict) or not isinstance(data.get("companies"), list):
        return None

    companies = _validate_companies(data["companies"])
    if companies is None:
        return None

    shares_ok, manual_shares = _validate_override_map(
        data.get("manualSharesOutstanding"), "manualSharesOutstanding"
    )
    prices_ok, manual_prices = _validate_override_map(
        data.get("manualStockPrices"), "manualStockPrices"
    )
    if not (shares_ok and prices_ok):
        return None

    version = data.get("version")
    return ImportResult(
        format="envelope",
        version=version if isinstance(version, int) and not isinstance(version, bool) else None,
        companies=companies,
        manual_shares_outstanding=manual_shares,
        manual_stock_prices=manual_prices,
    )


def parse_snapshot(text: str | bytes) -> ImportResult | None:
    """Decode JSON text and validate it. Undecodable input returns None."""
    try:
        data = json.loads(text)
    except ValueError as e:
        logger.debug("Rejecting import: invalid JSON (%s)", e)
        return None
    return validate_import(data)


def _iso_timestamp(ts: datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def export_snapshot(
    companies: Iterable[Company],
    manual_shares_outstanding: Mapping[str, float | int | None] | None = None,
    manual_stock_prices: Mapping[str, float | int | None] | None = None,
    exported_at: datetime | None = None,
) -> dict[str, Any]:
    """Build the version 2 envelope. Override maps that are None are omitted."""
    payload: dict[str, Any] = {
        "version": SNAPSHOT_VERSION,
        "exportedAt": _iso_timestamp(exported_at or datetime.now(UTC)),
        "companies": [c.to_wire() for c in companies],
    }
    if manual_shares_outstanding is not None:
        payload["manualSharesOutstanding"] = dict(manual_shares_outstanding)
    if manual_stock_prices is not None:
        payload["manualStockPrices"] = dict(manual_stock_prices)
    return payload


def export_legacy(companies: Iterable[Company]) -> list[dict[str, Any]]:
    """Bare company list, readable by older dashboards."""
    return [c.to_wire() for c in companies]


def dump_snapshot(
    companies: Iterable[Company],
    manual_shares_outstanding: Mapping[str, float | int | None] | None = None,
    manual_stock_prices: Mapping[str, float | int | None] | None = None,
    exported_at: datetime | None = None,
) -> str:
    """JSON text of export_snapshot, indented for hand editing."""
    payload = export_snapshot(
        companies, manual_shares_outstanding, manual_stock_prices, exported_at
    )
    return json.dumps(payload, indent=2)


def snapshot_filename(today: date | None = None) -> str:
    today = today or datetime.now(UTC).date()
    return f"mnav-dashboard-{today.isoformat()}.json"


def get_new_tickers(
    imported: Iterable[Company],
    existing: Iterable[Company],
    api_shares_outstanding: Mapping[str, float | int | None],
) -> list[str]:
    """Imported tickers that need an immediate shares fetch.

    A ticker qualifies if no existing company has it, or if there is no cached
    API share count for it. A cached value of None counts as no count, and a
    ticker listed twice in ``imported`` is returned once, in first-seen order.
    """
    existing_tickers = {c.ticker for c in existing}
    result: list[str] = []
    for company in imported:
        ticker = company.ticker
        if ticker in result:
            continue
        if ticker not in existing_tickers or api_shares_outstanding.get(ticker) is None:
            result.append(ticker)
    return result
